"""Translation backends via LiteLLM, with Ollama auto-pull support.

The pipeline only depends on the ``TranslationClient`` protocol: an async
``translate(prompt)`` returning the model's text, or ``None`` once the
client's own retries are exhausted.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from bisub.core.config import LLMConfig, ServiceConfig
from bisub.utils.console import console


class TranslationClient(Protocol):
    async def translate(self, prompt: str) -> str | None: ...


def _extract_ollama_model(provider: str) -> str | None:
    """Extract the Ollama model name from a LiteLLM provider string.

    Returns None if the provider is not an Ollama model.
    E.g. "ollama_chat/qwen3:8b" -> "qwen3:8b"
    """
    for prefix in ("ollama_chat/", "ollama/"):
        if provider.startswith(prefix):
            return provider[len(prefix) :]
    return None


def ensure_ollama_model(provider: str) -> None:
    """Pull the Ollama model if not already available locally.

    No-op if the provider is not an Ollama model or if the ollama package
    is not installed.
    """
    model_name = _extract_ollama_model(provider)
    if model_name is None:
        return

    try:
        import ollama
    except ImportError:
        return

    try:
        available = {m.model for m in ollama.list().models}
    except Exception as e:
        console.print(f"[dim]Could not list Ollama models: {e}[/dim]")
        return

    if model_name in available:
        return
    if ":" not in model_name and f"{model_name}:latest" in available:
        return

    console.print(f"[bold]Pulling Ollama model:[/bold] {model_name}")
    try:
        ollama.pull(model_name)
        console.print(f"[green]Model ready:[/green] {model_name}")
    except Exception as e:
        console.print(f"[yellow]Failed to pull model {model_name}:[/yellow] {e}")


def unload_ollama_model(provider: str) -> None:
    """Unload an Ollama model from GPU memory right away (keep_alive=0)."""
    model_name = _extract_ollama_model(provider)
    if model_name is None:
        return

    try:
        import ollama
    except ImportError:
        return

    try:
        ollama.generate(model=model_name, keep_alive=0)
        console.print(f"[dim]Unloaded Ollama model:[/dim] {model_name}")
    except Exception as e:
        console.print(f"[dim]Could not unload {model_name}: {e}[/dim]")


class LiteLLMClient:
    """Send prompts as single-turn chat completions through LiteLLM.

    Failed calls are retried up to ``max_retries`` times with a linear
    delay of ``retry_delay_ms * (attempt + 1)``; after that ``translate``
    returns None and the caller decides what a failure means.
    """

    def __init__(self, service: ServiceConfig, name: str = "") -> None:
        self.service = service
        self.name = name or service.model
        self._model_checked = False

    async def _complete(self, prompt: str) -> str | None:
        try:
            from litellm import acompletion
        except ImportError:
            raise ImportError("LiteLLM is not installed. Install with: pip install litellm")

        response = await acompletion(
            model=self.service.model,
            messages=[{"role": "user", "content": prompt}],
            api_base=self.service.api_base,
            api_key=self.service.api_key,
            temperature=self.service.temperature,
            max_tokens=self.service.max_tokens,
            timeout=self.service.timeout,
        )
        return response.choices[0].message.content

    async def translate(self, prompt: str) -> str | None:
        if not self._model_checked:
            await asyncio.to_thread(ensure_ollama_model, self.service.model)
            self._model_checked = True

        for attempt in range(self.service.max_retries + 1):
            try:
                content = await self._complete(prompt)
            except ImportError:
                raise
            except Exception as e:
                console.print(f"[yellow]{self.name} request failed:[/yellow] {e}")
            else:
                if content:
                    return content
                console.print(f"[yellow]{self.name} returned an empty response[/yellow]")

            if attempt < self.service.max_retries:
                await asyncio.sleep(self.service.retry_delay_ms * (attempt + 1) / 1000)
        return None

    def close(self) -> None:
        unload_ollama_model(self.service.model)


def create_client(config: LLMConfig, service: str | None = None) -> LiteLLMClient:
    """Build the client for the configured (or explicitly named) service."""
    name = service or config.service
    profile = config.services.get(name)
    if profile is None:
        known = ", ".join(sorted(config.services)) or "none"
        raise ValueError(f"Unknown translation service '{name}' (known: {known})")
    return LiteLLMClient(profile, name=name)
