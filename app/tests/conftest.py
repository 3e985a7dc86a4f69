import pytest

from roaster.config import Settings
from roaster.services.generation import GenerationClient

from fakes import FakeOpenAI, chat_response


@pytest.fixture
def settings() -> Settings:
    return Settings(
        spotify_client_id="client-id",
        spotify_client_secret="client-secret",
        generation_api_key="gen-key",
        client_url="http://localhost:5173",
    )


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI(response=chat_response("Bhai, Arijit ke alawa kuch sunta bhi hai?"))


@pytest.fixture
def generator(fake_openai) -> GenerationClient:
    return GenerationClient(client=fake_openai, model="test-model")
