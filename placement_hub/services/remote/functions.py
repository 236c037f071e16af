"""
Invocable functions - server-side operations callable by name.

generate-resume: writes a Markdown resume for the calling student, stores it
in the resumes bucket and records its URL on the student's row.
"""

import logging
import time
from typing import Callable, Dict, Optional

from openai import OpenAIError

from placement_hub.core.config import get_settings
from placement_hub.core.exceptions import PermissionDeniedError, PortalError, RemoteError
from placement_hub.services.deepseek_client import get_deepseek_client
from placement_hub.services.remote.blobs import BlobStore
from placement_hub.services.remote.policies import Actor
from placement_hub.services.remote.rows import RowStore

logger = logging.getLogger(__name__)

settings = get_settings()

GENERATE_RESUME = "generate-resume"


class ResumeGenerator:
    def __init__(self, rows: RowStore, blobs: BlobStore, llm_factory: Callable = get_deepseek_client):
        self.rows = rows
        self.blobs = blobs
        self.llm_factory = llm_factory

    def __call__(self, payload: dict, actor: Optional[Actor]) -> dict:
        if actor is None:
            raise PermissionDeniedError("generate-resume requires a signed-in user")

        try:
            content = self.llm_factory().generate_resume(payload)
        except OpenAIError as e:
            logger.error(f"[FUNCTIONS] resume generation failed for {actor.user_id}: {e}", exc_info=True)
            raise RemoteError("Resume generation service is unavailable") from e

        path = f"{actor.user_id}/resume-{int(time.time() * 1000)}.md"
        self.blobs.upload(
            settings.resume_bucket, path, content.encode("utf-8"),
            content_type="text/markdown", upsert=True, actor=actor
        )
        resume_url = self.blobs.get_public_url(settings.resume_bucket, path)
        self.rows.update("students", {"resume_url": resume_url}, {"user_id": actor.user_id}, actor=actor)

        return {"resume_url": resume_url, "content": content}


class FunctionInvoker:
    def __init__(self, functions: Dict[str, Callable[[dict, Optional[Actor]], dict]]):
        self.functions = functions

    def invoke(self, name: str, payload: dict, actor: Optional[Actor] = None) -> dict:
        function = self.functions.get(name)
        if function is None:
            raise RemoteError(f"Function not found: {name}")
        try:
            return function(payload, actor)
        except PortalError:
            raise
        except Exception as e:
            logger.error(f"[FUNCTIONS] {name} crashed: {e}", exc_info=True)
            raise RemoteError(f"Function {name} failed") from e
