"""
Top-level package for the Discord forum → GitHub issue bot.

This package hosts:
- config loading (.env secrets + optional config.yaml tunables) and validation
- thread transcript rendering, tracking-marker recovery and issue formatting
- LLM summary generation (OpenAI Responses API, Ollama) with strict JSON schemas
- a small async GitHub REST client
- the Discord command dispatcher for `!track` / `!update`
"""
