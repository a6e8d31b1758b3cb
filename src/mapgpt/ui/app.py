"""Gradio-based chat interface for MapGPT."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

import gradio as gr
import httpx

from mapgpt.api.schemas import ChatResponse

DEFAULT_API_URL = os.getenv("MAPGPT_API_URL", "http://localhost:8000")

_BULLET_RE = re.compile(r"•\s*")
_BLANK_RUN_RE = re.compile(r"\n\s*\n(\s*\n)+")
_IMAGE_URL_RE = re.compile(r"(?<![(\[<])(https?://[^\s()\[\]<>]+\.(?:jpg|jpeg|png|gif))(?![\w/])", re.IGNORECASE)


class APIError(RuntimeError):
    """Raised when communication with the MapGPT API fails."""


@dataclass
class MapGPTClient:
    """HTTPX-based client for the MapGPT FastAPI service."""

    base_url: str = DEFAULT_API_URL
    timeout: float = 90.0
    transport: httpx.BaseTransport | None = None

    def __post_init__(self) -> None:
        self._client = httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    def chat(self, prompt: str) -> str:
        response = self._client.post("/api/chat", json={"prompt": prompt})
        if response.status_code >= 400:
            cid = response.headers.get("X-Correlation-ID", "-")
            try:
                message = response.json().get("error") or response.text
            except ValueError:
                message = response.text
            raise APIError(f"Server error {response.status_code} [cid={cid}]: {message}")
        payload = ChatResponse.model_validate(response.json())
        if not payload.response:
            raise APIError("No response received from the server")
        return payload.response

    def close(self) -> None:
        self._client.close()


def clean_message(content: str) -> str:
    """Drop bullet glyphs, collapse blank-line runs and inline bare image URLs."""

    cleaned = _BULLET_RE.sub("", content).strip()
    cleaned = _IMAGE_URL_RE.sub(r"![](\1)", cleaned)
    return _BLANK_RUN_RE.sub("\n\n", cleaned)


def create_chat_handler(client: MapGPTClient):
    def handle_message(message: str, history: list) -> str:  # noqa: ARG001 - history handled by Gradio
        if not message.strip():
            return "⚠️ Enter a question."
        try:
            reply = client.chat(message)
        except (APIError, httpx.HTTPError) as exc:
            return f"⚠️ {exc}"
        return clean_message(reply)

    return handle_message


def build_interface(base_url: str | None = None, client: MapGPTClient | None = None) -> gr.Blocks:
    api_client = client or MapGPTClient(base_url=base_url or DEFAULT_API_URL)
    handle_message = create_chat_handler(api_client)

    with gr.Blocks(title="Mapoly GPT Chat") as demo:
        gr.Markdown("## Mapoly GPT Chat")
        gr.ChatInterface(
            fn=handle_message,
            chatbot=gr.Chatbot(height=480),
            textbox=gr.Textbox(placeholder="Ask about Mapoly, Computer Science, or anything else..."),
            examples=[
                "What is the latest MAPOLY news?",
                "Who is the HOD of Computer Science?",
                "help",
            ],
        )
        gr.Markdown("Tip: set `MAPGPT_API_URL` before launching to point the UI at a remote backend.")

    return demo


def launch(*, base_url: str | None = None, share: bool = False) -> None:
    """Launch the Gradio interface."""

    demo = build_interface(base_url=base_url)
    demo.launch(share=share)


if __name__ == "__main__":
    launch()
