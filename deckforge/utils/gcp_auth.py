"""
Google Cloud Platform Authentication
====================================

Initializes Vertex AI once per process, for both the Gemini text models
(through pydantic-ai) and the Imagen image model.

- Production: service account JSON from GCP_SERVICE_ACCOUNT_JSON
- Local development: Application Default Credentials
  (`gcloud auth application-default login`)
"""

import json
import os

import vertexai
from google.oauth2 import service_account

from config.settings import get_settings
from deckforge.utils.logger import setup_logger

logger = setup_logger(__name__)

_vertex_ai_initialized = False

REQUIRED_SERVICE_ACCOUNT_FIELDS = ['type', 'project_id', 'private_key', 'client_email']


def initialize_vertex_ai(force_reinit: bool = False) -> None:
    """
    Initialize Vertex AI with a service account or ADC.

    Args:
        force_reinit: Reinitialize even if already initialized

    Raises:
        RuntimeError: If credentials are unavailable or invalid
    """
    global _vertex_ai_initialized

    if _vertex_ai_initialized and not force_reinit:
        return

    settings = get_settings()
    project_id = settings.GCP_PROJECT_ID
    location = settings.GCP_LOCATION
    gcp_json_str = settings.GCP_SERVICE_ACCOUNT_JSON or os.environ.get('GCP_SERVICE_ACCOUNT_JSON')

    # pydantic-ai's google-vertex provider reads these
    os.environ.setdefault("GOOGLE_CLOUD_PROJECT", project_id)
    os.environ.setdefault("GOOGLE_CLOUD_LOCATION", location)

    if gcp_json_str:
        logger.info("🔐 Initializing Vertex AI with service account")
        try:
            credentials_info = json.loads(gcp_json_str)
        except json.JSONDecodeError as e:
            logger.error(f"FATAL: GCP_SERVICE_ACCOUNT_JSON is not valid JSON: {e}")
            raise RuntimeError("Invalid GCP_SERVICE_ACCOUNT_JSON format") from e

        missing_fields = [f for f in REQUIRED_SERVICE_ACCOUNT_FIELDS if f not in credentials_info]
        if missing_fields:
            raise RuntimeError(f"Service account JSON missing required fields: {missing_fields}")

        try:
            credentials = service_account.Credentials.from_service_account_info(
                credentials_info,
                scopes=['https://www.googleapis.com/auth/cloud-platform']
            )
            vertexai.init(project=project_id, location=location, credentials=credentials)
        except Exception as e:
            logger.error(f"FATAL: Failed to initialize Vertex AI with service account: {e}")
            raise RuntimeError(f"Cannot initialize Vertex AI with service account credentials: {e}") from e

        logger.info(f"✓ Vertex AI initialized as {credentials_info.get('client_email')} ({project_id}/{location})")

    else:
        logger.info("🔓 Initializing Vertex AI with Application Default Credentials")
        try:
            vertexai.init(project=project_id, location=location)
        except Exception as e:
            logger.error(f"FATAL: Failed to initialize Vertex AI with ADC: {e}")
            logger.error("Run: gcloud auth application-default login")
            raise RuntimeError(
                "Cannot initialize Vertex AI with Application Default Credentials. "
                "Run 'gcloud auth application-default login' first."
            ) from e

        logger.info(f"✓ Vertex AI initialized with ADC ({project_id}/{location})")

    _vertex_ai_initialized = True


def get_project_info() -> dict:
    """Vertex AI project details for the health check."""
    settings = get_settings()
    return {
        "project_id": settings.GCP_PROJECT_ID,
        "location": settings.GCP_LOCATION,
        "initialized": _vertex_ai_initialized,
        "has_service_account": bool(settings.GCP_SERVICE_ACCOUNT_JSON),
    }
