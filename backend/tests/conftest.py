"""
Shared pytest fixtures and configuration for all tests
"""
import base64
import pytest
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

# Add backend to Python path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00fake-jpeg-body"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png-body"
RESULT_DATA = base64.b64encode(b"edited-image-bytes").decode("ascii")

@pytest.fixture
def jpeg_bytes():
    return JPEG_BYTES

@pytest.fixture
def png_bytes():
    return PNG_BYTES

@pytest.fixture
def result_data():
    """Base64 body of an image returned by the model"""
    return RESULT_DATA

@pytest.fixture
def adapter():
    """Provide a stand-in for GeminiService with awaitable request methods"""
    from models.studio import OperationResult
    mock = MagicMock()
    mock.request_edit = AsyncMock(return_value=OperationResult.absent())
    mock.request_generation = AsyncMock(return_value=OperationResult.absent())
    return mock

@pytest.fixture
def controller(adapter):
    """Provide a StudioController wired to the mock adapter"""
    from services.studio_controller import StudioController
    return StudioController("test-session", adapter=adapter)

@pytest.fixture
def gemini_response():
    """Build a generateContent response body from a list of parts"""
    def build(*parts):
        return {
            "candidates": [
                {
                    "content": {"role": "model", "parts": list(parts)},
                    "finishReason": "STOP",
                    "index": 0
                }
            ]
        }
    return build
