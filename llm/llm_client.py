from dotenv import load_dotenv
load_dotenv(override=True)

import os
import logging
import re
from typing import Optional, Type, TypeVar

import torch
from transformers import pipeline

from google import genai
from google.genai import types
from pydantic import BaseModel

from config import GEMINI_TEXT_MODEL, GEMINI_VISION_MODEL, LOCAL_MODEL_NAME


# ============================================================
# SHARED CLIENTS (ONE PER PROCESS)
# ============================================================

_LOCAL_PIPE = None
_GEMINI_CLIENT = None

FALLBACK_ANSWER = "Advice is temporarily unavailable. Please try again shortly."

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class LLMClient:
    """
    Hosted / local model access for the advisory service.

    GEMINI:
        - Farmer advisory answers
        - Crop image analysis (multimodal, structured output)

    LOCAL (FLAN-T5):
        - Offline advisory answers, text only
    """

    def __init__(
        self,
        provider: str = "gemini",        # "gemini" | "local"
        max_output_tokens: int = 2048,
    ):
        self.provider = provider
        self.max_output_tokens = max_output_tokens

        global _LOCAL_PIPE, _GEMINI_CLIENT

        # ---------------- GEMINI ----------------
        if self.provider == "gemini":
            if _GEMINI_CLIENT is None:
                api_key = os.getenv("GEMINI_API_KEY")
                if not api_key:
                    raise RuntimeError("❌ GEMINI_API_KEY is missing")

                logging.info("🔑 Initializing Gemini client")
                _GEMINI_CLIENT = genai.Client(api_key=api_key)

            self.gemini_client = _GEMINI_CLIENT

        # ---------------- LOCAL MODEL ----------------
        elif self.provider == "local":
            if _LOCAL_PIPE is None:
                device = 0 if torch.cuda.is_available() else -1
                logging.info(f"🔧 Initializing {LOCAL_MODEL_NAME} on device={device}")

                _LOCAL_PIPE = pipeline(
                    task="text2text-generation",
                    model=LOCAL_MODEL_NAME,
                    device=device,
                )

            self.pipe = _LOCAL_PIPE

        else:
            raise ValueError(f"Unknown provider: {self.provider}")

    @property
    def supports_images(self) -> bool:
        return self.provider == "gemini"

    # ============================================================
    # TEXT
    # ============================================================

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> Optional[str]:
        """
        Returns the model text, or None when the provider failed or
        produced nothing. Never raises.
        """

        limit = min(max_tokens or self.max_output_tokens, self.max_output_tokens)

        if self.provider == "local":
            try:
                output = self.pipe(
                    f"{system_prompt}\n\n{user_prompt}",
                    max_new_tokens=limit,
                    do_sample=False,
                    num_beams=4,
                    repetition_penalty=1.25,
                )
                text = _dedupe_sentences(output[0]["generated_text"].strip())
                return text or None

            except Exception:
                logging.exception("❌ Local LLM failed")
                return None

        try:
            response = self.gemini_client.models.generate_content(
                model=GEMINI_TEXT_MODEL,
                contents=user_prompt,
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    temperature=temperature,
                    max_output_tokens=limit,
                ),
            )

            text = (response.text or "").strip()
            if not text:
                logging.error("❌ Gemini returned empty response")
                return None

            return text

        except Exception as e:
            logging.exception(f"❌ Gemini failed: {e}")
            return None

    # ============================================================
    # IMAGE → STRUCTURED
    # ============================================================

    def generate_structured(
        self,
        prompt: str,
        image_bytes: bytes,
        mime_type: str,
        schema: Type[SchemaT],
        max_tokens: Optional[int] = None,
    ) -> Optional[SchemaT]:
        """
        Ask Gemini about an image and parse the reply into `schema`.
        Returns None on any provider or parsing failure.
        """

        if not self.supports_images:
            logging.error(f"❌ Provider {self.provider} cannot analyze images")
            return None

        try:
            response = self.gemini_client.models.generate_content(
                model=GEMINI_VISION_MODEL,
                contents=[
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                    prompt,
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=schema,
                    max_output_tokens=max_tokens or self.max_output_tokens,
                ),
            )

            parsed = response.parsed
            if isinstance(parsed, schema):
                return parsed

            if response.text:
                return schema.model_validate_json(response.text)

            logging.error("❌ Gemini returned no structured output")
            return None

        except Exception as e:
            logging.exception(f"❌ Gemini image analysis failed: {e}")
            return None


# ============================================================
# UTILS
# ============================================================

def _dedupe_sentences(text: str) -> str:
    sentences = re.split(r"(?<=[.!?])\s+", text)
    seen = set()
    clean = []

    for s in sentences:
        key = s.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        clean.append(s.strip())

    return " ".join(clean)
