"""
Shared test fixtures and configuration.
"""

import pytest
import os
from unittest.mock import AsyncMock

# Set test environment variables before importing app modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOCAL_STORAGE_PATH", "/tmp/component_studio_test_data")
os.environ.setdefault("LOG_API_REQUESTS", "false")

from component_studio.llm.base import LLMProvider, LLMResponse
from component_studio.llm.dispatcher import ProviderDispatcher
from component_studio.services.generator import ComponentGenerator
from component_studio.services.session_service import SessionService
from component_studio.storage.cache import MemoryCache
from component_studio.storage.local_storage import LocalStorage
from component_studio.storage.session_storage import SessionStorage
from component_studio.storage.user_storage import UserStorage


SAMPLE_RESPONSE = """Here is a friendly primary button with a hover effect.
It works well for calls to action.

```jsx
function PrimaryButton() {
  return <button className="primary-button">Go</button>;
}

export default PrimaryButton;
```

```css
.primary-button {
  background: #007bff;
}
```
"""


def make_provider(content: str = SAMPLE_RESPONSE, total_tokens: int = 42) -> AsyncMock:
    """Provider double returning a fixed completion."""
    provider = AsyncMock(spec=LLMProvider)
    provider.chat_completion.return_value = LLMResponse(
        content=content,
        model="test-model",
        usage={"total_tokens": total_tokens},
    )
    return provider


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "data"))


@pytest.fixture
def user_storage(storage):
    return UserStorage(storage)


@pytest.fixture
def provider():
    return make_provider()


@pytest.fixture
def dispatcher(provider):
    return ProviderDispatcher(openai=provider)


@pytest.fixture
def generator(dispatcher):
    return ComponentGenerator(dispatcher)


@pytest.fixture
def session_service(storage, generator, user_storage):
    return SessionService(
        SessionStorage(storage),
        generator,
        cache=MemoryCache(),
        user_store=user_storage,
    )
