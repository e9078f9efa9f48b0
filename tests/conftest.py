from __future__ import annotations

from pathlib import Path

import pytest

from baselinegen.config import BaselineConfig
from baselinegen.toolchain.parser import Toolchain, get_toolchain
from tests._fixtures.corpus_builder import CorpusBuilder


@pytest.fixture
def corpus_builder(tmp_path: Path) -> CorpusBuilder:
    """Provide a reusable corpus builder rooted at the pytest tmp_path."""
    return CorpusBuilder(tmp_path)


@pytest.fixture
def toolchain() -> Toolchain:
    return get_toolchain()


@pytest.fixture
def inline_config(corpus_builder: CorpusBuilder, tmp_path: Path) -> BaselineConfig:
    """Config that stages outside the corpus and runs tasks in-process."""
    return BaselineConfig(
        root=corpus_builder.path(),
        staging_dir=tmp_path / "staging",
        workers=0,
    )
