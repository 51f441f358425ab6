"""
Easy Note Backend: Abstract Provider Interfaces
===============================================

What:  Abstract base classes for the two provider boundaries: text completion
       and speech-to-text.
Why:   Task services depend on these contracts, not on a vendor SDK. Swapping
       Gemini for another provider, or for a test double, touches no task code.
How:   Concrete adapters (GeminiService) inherit from both and implement the
       abstract methods.
Who:   Called by AIService for every AI request.

Contract shared by both adapters:
    - Transport or API failures are raised as ProviderError.
    - Returned text is UNTRUSTED. A JSON response-format hint is only a hint;
      callers always run their own parse/coercion step.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class ChatMessage:
    """
    One role-tagged prompt message.

    role: "system" or "user"
    content: message text
    """
    role: str
    content: str


class CompletionAdapter(ABC):
    """
    Interface for chat-style text completion.
    """

    @abstractmethod
    async def complete(
        self,
        messages: Sequence[ChatMessage],
        max_tokens: int,
        temperature: float,
        json_response: bool = False,
    ) -> Optional[str]:
        """
        Send an ordered prompt to a text model and return its raw output.

        Args:
            messages:      Ordered role-tagged messages.
            max_tokens:    Upper bound on generated tokens.
            temperature:   Sampling temperature.
            json_response: Ask the provider for a JSON object (hint only).

        Returns:
            The raw completion text, or None when the provider produced no
            text at all (empty or blocked candidate).

        Raises:
            ProviderError: transport or provider failure.
        """
        ...


class TranscriptionAdapter(ABC):
    """
    Interface for speech-to-text.
    """

    @abstractmethod
    async def transcribe(self, audio_path: str, mime_type: str, language: str) -> str:
        """
        Transcribe an audio file to plain text.

        Why a path (not bytes): provider SDKs upload from a file or stream.
        The caller owns the file and deletes it afterwards.

        Raises:
            ProviderError: transport or provider failure.
        """
        ...
