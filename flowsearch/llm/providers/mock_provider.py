"""Mock LLM provider for tests and offline runs."""

from collections import deque
from threading import Lock

from flowsearch.core.exceptions import ModelError
from flowsearch.llm.models import ModelRequest, ModelResponse
from flowsearch.llm.providers.base import BaseLLMProvider

EMPTY_RESULTS = """<results>
<query_interpretation>No matching records.</query_interpretation>
<deals></deals>
<contacts></contacts>
<events></events>
</results>"""


class MockLLMProvider(BaseLLMProvider):
    """
    Mock provider that returns queued replies.

    Queue text with ``set_next_response`` or an error with ``set_next_error``;
    with an empty queue it answers with an empty result set. Every request is
    recorded in ``requests``.
    """

    default_model = "mock"

    def __init__(self, model: str = "mock", **kwargs) -> None:
        super().__init__(model, **kwargs)
        self.requests: list[ModelRequest] = []
        self._queue: deque[str | ModelError] = deque()
        self._lock = Lock()

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def initialize(self) -> None:
        return None

    def complete(self, request: ModelRequest) -> ModelResponse:
        with self._lock:
            self.requests.append(request)
            queued = self._queue.popleft() if self._queue else EMPTY_RESULTS

        if isinstance(queued, ModelError):
            raise queued

        return ModelResponse(
            content=queued,
            model=self._resolve_model(request.options),
            provider="mock",
            metadata={"call": self.call_count},
        )

    def health_check(self) -> bool:
        return True

    def list_models(self) -> list[str]:
        return [self.model]

    def get_provider_name(self) -> str:
        return "mock"

    def set_next_response(self, response: str) -> None:
        """Queue a reply."""
        with self._lock:
            self._queue.append(response)

    def set_next_error(self, error: ModelError) -> None:
        """Queue a failure."""
        with self._lock:
            self._queue.append(error)

    def reset(self) -> None:
        """Reset mock state."""
        with self._lock:
            self._queue.clear()
            self.requests.clear()
