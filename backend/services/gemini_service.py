import httpx
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from config.settings import settings
from models.studio import ImagePayload, OperationResult, StyleVariant

STYLE_INSTRUCTIONS: Mapping[StyleVariant, str] = MappingProxyType({
    StyleVariant.FLAT: (
        "You are an expert architect and designer specializing in technical blueprints, "
        "permaculture layouts, and graph views. Generate clear, detailed, and accurate visual "
        "representations based on the user's request. The output should be a single, "
        "high-quality image."
    ),
    StyleVariant.RENDERED: (
        "You are an expert 3D modeler and product designer. Generate a clear, 3D rendered "
        "blueprint of the user's request. The image should have a clean, technical aesthetic, "
        "showing perspective, and clearly labeling important dimensions like height, width, "
        "and depth if provided. The output must be a single, high-quality image."
    ),
})

IMAGE_ONLY_CONFIG = {"responseModalities": ["IMAGE"]}


def extract_first_inline_image(data: Dict[str, Any], fallback_mime_type: str) -> Optional[ImagePayload]:
    """Return the first inline image part of the first candidate, if any.

    Text parts and any later image parts are ignored.
    """
    candidates = data.get("candidates") or []
    if not candidates:
        return None

    content = candidates[0].get("content") or {}
    for part in content.get("parts") or []:
        inline_data = part.get("inlineData") or part.get("inline_data")
        if not inline_data or not inline_data.get("data"):
            continue
        mime_type = inline_data.get("mimeType") or inline_data.get("mime_type") or fallback_mime_type
        return ImagePayload(data=inline_data["data"], mime_type=mime_type)

    return None


class GeminiService:
    def __init__(self, api_key: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key if api_key is not None else settings.gemini_api_key()
        self.base_url = settings.GEMINI_BASE_URL.rstrip('/')
        self.model = settings.GEMINI_MODEL
        self.timeout = settings.GEMINI_TIMEOUT_SECONDS
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def request_edit(self, image: ImagePayload, instruction: str) -> OperationResult:
        """Edit an image with a text instruction using Gemini"""
        parts = [
            {
                "inlineData": {
                    "mimeType": image.mime_type,
                    "data": image.data
                }
            },
            {
                "text": instruction
            }
        ]
        return await self._generate(parts, fallback_mime_type=image.mime_type)

    async def request_generation(self, description: str, style: StyleVariant = StyleVariant.FLAT) -> OperationResult:
        """Generate a blueprint-style image from a text description using Gemini"""
        parts = [{"text": description}]
        return await self._generate(
            parts,
            fallback_mime_type=settings.GENERATED_IMAGE_MIME_TYPE,
            system_instruction=STYLE_INSTRUCTIONS[style]
        )

    async def _generate(
        self,
        parts: List[Dict[str, Any]],
        fallback_mime_type: str,
        system_instruction: Optional[str] = None
    ) -> OperationResult:
        if not self.api_key:
            print("Error calling Gemini API: API key not configured")
            return OperationResult.failure("Gemini API key not configured")

        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": dict(IMAGE_ONLY_CONFIG)
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json"
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}/models/{self.model}:generateContent",
                    json=payload,
                    headers=headers
                )

                if response.status_code != 200:
                    error_message = self._error_message(response)
                    print(f"Error calling Gemini API: {error_message}")
                    return OperationResult.failure(error_message)

                data = response.json()
                if not isinstance(data, dict):
                    print("Error calling Gemini API: malformed response body")
                    return OperationResult.failure("Malformed response from Gemini API")

                image = extract_first_inline_image(data, fallback_mime_type)

            if image is None:
                return OperationResult.absent()
            return OperationResult.from_image(image)

        except httpx.TimeoutException as error:
            print(f"Error calling Gemini API: request timed out ({error})")
            return OperationResult.failure("Request timeout - Gemini API may be slow")
        except (httpx.HTTPError, ValueError, AttributeError, TypeError) as error:
            # ValueError also covers JSON decoding and payload validation of malformed bodies
            print(f"Error calling Gemini API: {error}")
            return OperationResult.failure(f"Error calling Gemini API: {str(error)}")

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        fallback = f"API request failed: {response.status_code}"
        try:
            error_data = response.json() if response.content else {}
        except ValueError:
            return fallback
        if not isinstance(error_data, dict):
            return fallback
        error = error_data.get("error")
        if isinstance(error, dict):
            return error.get("message") or fallback
        return fallback
