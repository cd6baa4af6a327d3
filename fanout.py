import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import List, Optional

from google.cloud import translate_v3

logger = logging.getLogger(__name__)

SENTENCES = (
    "s2a is awesome",
    "zatar is great",
    "authentication is important",
    "mtls is a must",
    "google cloud is better than aws",
    "google cloud is better than azure",
    "how are you?",
    "good morning",
    "summer is the best",
    "I love Sunnyvale",
)


class ResponseBuffer:
    """Plain-text response body shared by concurrent writers.

    The first call that commits a status wins; later status changes are
    ignored. A plain write commits 200.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._chunks: List[str] = []
        self._status: Optional[int] = None

    def write(self, text: str) -> None:
        with self._lock:
            if self._status is None:
                self._status = 200
            self._chunks.append(text)

    def fail(self, status: int, message: str) -> None:
        with self._lock:
            if self._status is None:
                self._status = status
            self._chunks.append(message)

    @property
    def status(self) -> int:
        with self._lock:
            return self._status or 200

    @property
    def body(self) -> str:
        with self._lock:
            return "".join(self._chunks)

    def to_response(self):
        return self.body, self.status, {"Content-Type": "text/plain; charset=utf-8"}


def translate_one(client, text: str, target_language: str, parent: str, out: ResponseBuffer) -> None:
    """Translate a single sentence and write the outcome to ``out``."""
    logger.info("sending translate text request ...")
    request = translate_v3.TranslateTextRequest(
        parent=parent,
        contents=[text],
        mime_type="text/plain",
        target_language_code=target_language,
    )
    try:
        response = client.translate_text(request=request)
    except Exception as e:
        logger.exception("Translate request failed for %r: %s", text, e)
        out.fail(500, f"Translate: {e}\n")
        return

    for translation in response.translations:
        out.write(f"Translated text: {translation.translated_text}\n")


def fan_out(client, sentences, target_language: str, parent: str, out: ResponseBuffer) -> None:
    """Translate every sentence on its own thread and wait for all of them."""
    sentences = list(sentences)
    if not sentences:
        return

    with ThreadPoolExecutor(max_workers=len(sentences), thread_name_prefix="translate") as pool:
        futures = [
            pool.submit(translate_one, client, text, target_language, parent, out)
            for text in sentences
        ]
        wait(futures)
