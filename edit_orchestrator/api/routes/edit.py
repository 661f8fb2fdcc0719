"""
Editor endpoints.

POST /v1/edit runs one natural-language edit request through the
orchestration loop against a document seeded from the browser's text;
DELETE /v1/sessions/{session_id} forgets a conversation.
"""

import logging
import uuid
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from ..schemas import (
    EditRequest,
    EditResponse,
    ErrorResponse,
    ToolCallTrace,
    TranscriptMessage,
)
from ..sessions import SessionStore
from ...errors import CompletionError, RoundLimitExceeded
from ...llm_call import CompletionClient
from ...models import AppConfig
from ...orchestration import (
    EDITOR_SYSTEM_PROMPT,
    EDITOR_TOOL_SPECS,
    OrchestrationLoop,
    build_user_prompt,
)
from ...tools import Selection, TextDocument, build_editor_registry
from ...tracing import TracingContext, get_tracing_client

logger = logging.getLogger(__name__)

router = APIRouter()


def get_app_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_completion_client(request: Request) -> CompletionClient:
    """Shared endpoint client, created on first use."""
    client = getattr(request.app.state, "completion_client", None)
    if client is None:
        app_config = request.app.state.config
        client = CompletionClient.from_config(app_config.orchestrator, app_config.retry)
        request.app.state.completion_client = client
    return client


@router.post(
    "/v1/edit",
    response_model=EditResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        422: {"model": ErrorResponse, "description": "Round limit exceeded"},
        502: {"model": ErrorResponse, "description": "Completion endpoint failed"},
    },
    summary="Edit a document",
    description=(
        "Translate a natural-language edit request into editor tool calls. "
        "Pass the returned session_id on follow-up requests to keep the conversation."
    ),
)
async def edit_document(
    request: EditRequest,
    app_config: AppConfig = Depends(get_app_config),
    sessions: SessionStore = Depends(get_session_store),
    client: CompletionClient = Depends(get_completion_client),
) -> EditResponse:
    """Run the edit request and return the edited document."""
    execution_id = f"exec-{uuid.uuid4().hex[:8]}"
    logger.info(f"[{execution_id}] Processing edit request: {request.prompt[:100]}")

    selection = None
    if request.selection is not None:
        selection = Selection(start=request.selection.start, length=request.selection.length)
    document = TextDocument(request.document, selection=selection)
    registry = build_editor_registry(document)

    session = sessions.get(request.session_id) if request.session_id else None
    if session is None:
        loop = OrchestrationLoop(
            client=client,
            registry=registry,
            specs=EDITOR_TOOL_SPECS,
            system_prompt=EDITOR_SYSTEM_PROMPT,
            max_rounds=app_config.orchestrator.max_rounds,
            round_timeout=app_config.orchestrator.round_timeout,
        )
        session = sessions.add(loop, request.session_id)
        logger.debug(f"[{execution_id}] Created session {session.session_id}")

    tracing_context = TracingContext(
        execution_id=execution_id, session_id=session.session_id
    )
    tracing_context.start_trace(
        name="edit_request",
        prompt=request.prompt,
        metadata={"document_length": len(request.document)},
    )

    async with session.lock:
        loop = session.loop
        # The browser's text is authoritative for every request.
        loop.registry = registry
        loop.execution_id = execution_id
        loop.tracing_context = tracing_context

        try:
            result = await loop.run(build_user_prompt(request.prompt, document.text))
        except RoundLimitExceeded as e:
            logger.warning(f"[{execution_id}] {e}")
            _discard_session(sessions, session.session_id, tracing_context, str(e))
            raise HTTPException(status_code=422, detail=str(e)) from e
        except CompletionError as e:
            logger.error(f"[{execution_id}] Completion endpoint failed: {e}")
            _discard_session(sessions, session.session_id, tracing_context, str(e))
            raise HTTPException(status_code=502, detail=str(e)) from e
        except Exception as e:
            logger.exception(f"[{execution_id}] Edit request failed: {e}")
            _discard_session(sessions, session.session_id, tracing_context, str(e))
            raise HTTPException(status_code=500, detail=str(e)) from e

        transcript = None
        if request.include_transcript:
            transcript = [
                TranscriptMessage(**message) for message in loop.transcript.to_messages()
            ]

    logger.debug(f"[{execution_id}] Answer: {result.answer[:200]}")
    _end_trace(
        tracing_context,
        result.answer,
        "success",
        metadata={"rounds": result.rounds, "tool_calls": len(result.tool_calls)},
    )

    return EditResponse(
        session_id=session.session_id,
        answer=result.answer,
        document=document.text,
        operations=document.operations,
        formats=[asdict(span) for span in document.spans],
        rounds=result.rounds,
        tool_calls=[ToolCallTrace(**asdict(record)) for record in result.tool_calls],
        transcript=transcript,
    )


@router.delete(
    "/v1/sessions/{session_id}",
    status_code=204,
    responses={404: {"model": ErrorResponse, "description": "Unknown session"}},
    summary="Delete a session",
)
def delete_session(
    session_id: str, sessions: SessionStore = Depends(get_session_store)
) -> Response:
    """Forget a conversation and its transcript."""
    if not sessions.remove(session_id):
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    logger.info(f"Deleted session {session_id}")
    return Response(status_code=204)


def _end_trace(
    tracing_context: TracingContext, output: str, status: str, metadata: dict | None = None
) -> None:
    tracing_context.end_trace(output=output, status=status, metadata=metadata)
    client = get_tracing_client()
    if client:
        client.flush()


def _discard_session(
    sessions: SessionStore, session_id: str, tracing_context: TracingContext, error: str
) -> None:
    """
    Forget a session whose request failed.

    Tool calls that already ran edited a document the browser never
    receives, so the transcript no longer matches the browser's text.
    """
    sessions.remove(session_id)
    logger.info(f"Discarded session {session_id} after failed request")
    _end_trace(tracing_context, error, "error")
