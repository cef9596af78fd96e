import pytest

from memora.domain.models import Card
from memora.infrastructure.adapters.stores import (
    InMemoryCardStore,
    InMemoryReviewLogStore,
    InMemoryStatsStore,
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep a developer's real config file and MEMORA_* env out of tests."""
    import memora.application.config as config_module

    monkeypatch.setattr(config_module, "CONFIG_FILES", [tmp_path / "missing.toml"])
    for key in (
        "MEMORA_OPENAI_API_KEY",
        "MEMORA_DATABASE_PATH",
        "MEMORA_STRICT_GRADES",
        "MEMORA_ENFORCE_CARD_OWNERSHIP",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def card_store():
    return InMemoryCardStore()


@pytest.fixture
def log_store():
    return InMemoryReviewLogStore()


@pytest.fixture
def stats_store():
    return InMemoryStatsStore()


@pytest.fixture
def make_card():
    def _make(card_id="card_1", user_id="user_1", question="Capital of France?",
              answer="Paris", deck_id=None, **kwargs):
        return Card(
            id=card_id,
            user_id=user_id,
            question=question,
            answer=answer,
            deck_id=deck_id,
            **kwargs,
        )

    return _make
