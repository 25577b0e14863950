"""
issuebot/llm/ollama_service.py

Ollama runner for schema-constrained issue summaries.
The JSON schema is passed as Ollama's `format` so the server enforces it.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

from dotenv import load_dotenv
from ollama import Client


class OllamaService:
    def __init__(self, host: str):
        """
        host: Ollama server URL
        """
        load_dotenv()

        api_key = os.getenv("OLLAMA_API_KEY")
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self.client = Client(host=host, headers=headers)

    def run(
        self,
        messages: List[Dict[str, str]],
        model: str,
        schema: Dict[str, Any],
        temperature: float = 0.3,
    ) -> str:
        response = self.client.chat(
            model=model,
            messages=messages,
            format=schema,
            options={"temperature": temperature},
        )
        logging.debug("OllamaService: response content=%r", response.message.content)
        return response.message.content or ""
