import pytest

from pdfcards.exceptions import LLMError
from pdfcards.storage import Store

from tests.helpers import FakeLLM, FakeSurface


@pytest.fixture
def storage_root(tmp_path):
    return tmp_path / ".flashcards"


@pytest.fixture
async def store(storage_root):
    store = Store(storage_root)
    yield store
    await store.close()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def llm_error():
    return LLMError("OpenAI API error: 401 invalid api key")
