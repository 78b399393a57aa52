"""
Image generation through LiteLLM.

The generated image comes back as an inline ``data:image/...;base64,...``
marker. The tool does not feed its result back to the model: the marker
becomes the turn output and the Discord layer turns it into an attachment.
"""

from __future__ import annotations

from typing import Any

from litellm import aimage_generation

from chloe.config.logging import get_logger
from chloe.errors import ToolExecutionFailed
from chloe.tools.base import SideChannel, Tool, require_str
from chloe.tools.names import ToolName

logger = get_logger(__name__)


class ImageGenerationTool(Tool):
    """
    Args:
        model: LiteLLM image model string (e.g. ``gemini/imagen-3.0-generate-002``)
        api_key: Key for the image model's provider; empty uses LiteLLM's env lookup
    """

    name = ToolName.GENERATE_IMAGE.value
    description = (
        "Generate images from a text description. Provide a detailed description of what "
        "you want to create. MUST be used when users ask you to create, generate, make, "
        "or draw images, pictures, or visual content."
    )
    parameters_schema = {
        "type": "object",
        "properties": {
            "prompt": {
                "type": "string",
                "description": "A detailed description of the image to generate",
            },
        },
        "required": ["prompt"],
    }
    needs_result_feedback = False

    def __init__(self, model: str, api_key: str = "", timeout: float = 60.0):
        self._model = model
        self._api_key = api_key
        self._timeout = timeout

    async def execute(
        self,
        parameters: dict[str, Any],
        side_channel: SideChannel | None = None,
    ) -> str:
        prompt = require_str(parameters, "prompt")
        logger.info(f"Generating image with {self._model} ({len(prompt)} char prompt)")

        kwargs: dict[str, Any] = {
            "model": self._model,
            "prompt": prompt,
            "n": 1,
            "timeout": self._timeout,
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key

        try:
            response = await aimage_generation(**kwargs)
        except Exception as e:
            raise ToolExecutionFailed(f"Image generation failed: {e}", cause=e) from e

        for image in response.data or []:
            b64 = getattr(image, "b64_json", None)
            if b64:
                return f"data:image/png;base64,{b64}"
            url = getattr(image, "url", None)
            if url:
                return url

        raise ToolExecutionFailed("No image was generated")
