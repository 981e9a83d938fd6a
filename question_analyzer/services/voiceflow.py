"""
Voiceflow Service — Transcript API client.

list_transcripts(): GET /v2/transcripts/{project}?range=<token>
fetch_dialog():     GET /v2/transcripts/{project}/{transcript}
validate_credentials(): cheap "Today" listing used as a credential probe.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from question_analyzer.errors import CredentialError, TranscriptServiceError
from question_analyzer.models.analysis import (
    DialogTurn,
    TranscriptCredentials,
    TranscriptSummary,
)

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 30.0
_PROBE_RANGE = "Today"


def _listing_url(credentials: TranscriptCredentials, range_token: str) -> str:
    # The API expects %20 in range tokens, not the + that form encoding gives
    return (
        f"{credentials.base_url}/v2/transcripts/{credentials.project_id}"
        f"?range={quote(range_token, safe='')}"
    )


def _headers(credentials: TranscriptCredentials) -> dict[str, str]:
    return {
        "Authorization": credentials.api_key,
        "accept": "application/json",
    }


def _check_response(resp: httpx.Response) -> None:
    """Map auth failures to CredentialError, everything else to raise_for_status."""
    if resp.status_code == 401:
        raise CredentialError("invalid key")
    if resp.status_code == 404:
        raise CredentialError("invalid project")
    resp.raise_for_status()


async def list_transcripts(
    http: httpx.AsyncClient,
    credentials: TranscriptCredentials,
    range_token: str,
) -> list[TranscriptSummary]:
    """List transcript summaries for a window token."""
    resp = await http.get(
        _listing_url(credentials, range_token), headers=_headers(credentials)
    )
    _check_response(resp)

    data: Any = resp.json()
    if not isinstance(data, list):
        raise TranscriptServiceError(
            f"Unexpected transcript listing shape: {type(data).__name__}"
        )
    return [TranscriptSummary.model_validate(row) for row in data]


async def fetch_dialog(
    http: httpx.AsyncClient,
    credentials: TranscriptCredentials,
    transcript_id: str,
) -> list[DialogTurn]:
    """Fetch the ordered turns of one transcript."""
    url = (
        f"{credentials.base_url}/v2/transcripts/"
        f"{credentials.project_id}/{transcript_id}"
    )
    resp = await http.get(url, headers=_headers(credentials))
    if resp.status_code in (401, 404):
        raise TranscriptServiceError(
            f"Transcript {transcript_id} unavailable ({resp.status_code})"
        )
    resp.raise_for_status()

    data: Any = resp.json()
    if not isinstance(data, list):
        raise TranscriptServiceError(
            f"Unexpected dialog shape for {transcript_id}: {type(data).__name__}"
        )
    return [DialogTurn.from_api(turn) for turn in data if isinstance(turn, dict)]


async def validate_credentials(
    credentials: TranscriptCredentials,
    timeout: float = _DEFAULT_TIMEOUT,
) -> None:
    """Probe the listing endpoint for "Today".

    Raises CredentialError("invalid key") on 401, ("invalid project") on 404,
    and ("validation failed") on any other failure.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout) as http:
            resp = await http.get(
                _listing_url(credentials, _PROBE_RANGE),
                headers=_headers(credentials),
            )
    except httpx.HTTPError as e:
        logger.warning("Credential probe transport failure: %s", e)
        raise CredentialError("validation failed") from e

    if resp.status_code == 401:
        raise CredentialError("invalid key")
    if resp.status_code == 404:
        raise CredentialError("invalid project")
    if not resp.is_success:
        logger.warning(
            "Credential probe failed for project %s: %d",
            credentials.project_id,
            resp.status_code,
        )
        raise CredentialError("validation failed")
