"""LINE Calendar Assistant — a LINE bot that manages a Google Calendar.

Architecture Overview
=====================

Each LINE text message goes through one linear pipeline:

1. **gate** — in group chats and rooms the message must start with the
   trigger word; otherwise it is ignored before any model call.
2. **parse** — one Claude call classifies the message and extracts
   parameters as JSON, validated into a typed ``Intent``.  Anything the
   model gets wrong yields no intent and the bot stays silent.
3. **dispatch** — the intent picks exactly one action: create one event,
   create several concurrently, list upcoming events, refuse deletion, or
   echo a chat reply.
4. **reply** — the result becomes a LINE text or Flex message.

Key Design Decisions
--------------------
- **LLM**: Claude via ``langchain-anthropic``; single attempt, fail-soft.
- **Calendar**: Google Calendar v3 through ``googleapiclient``, authenticated with
  Application Default Credentials.  No retries.
- **Time**: model times without an offset are read as Taipei (UTC+8).
- **Concurrency**: events of one webhook delivery, and the inserts of a
  batch, run concurrently and are isolated from each other's failures.

Package Structure
-----------------
- ``calendar_assistant/config.py`` — configuration from env / SSM
- ``calendar_assistant/prompts.py`` — intent-extraction prompt
- ``calendar_assistant/intents.py`` — typed intent union
- ``calendar_assistant/time_normalizer.py`` — time parsing and defaults
- ``calendar_assistant/calendar_ops.py`` — create / list operations
- ``calendar_assistant/dispatcher.py`` — intent -> reply
- ``calendar_assistant/presentation.py`` — LINE message builders
- ``calendar_assistant/webhook.py`` — per-event processing
- ``calendar_assistant/server.py`` — FastAPI application
- ``calendar_assistant/main.py`` — CLI for local testing
- ``calendar_assistant/services/`` — Anthropic, Google Calendar, LINE clients, metrics
- ``calendar_assistant/api/`` — FastAPI routes and Pydantic schemas
"""
