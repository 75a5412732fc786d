"""Tests for config.ini loading."""

import pytest

from circulation.config import LendingPolicy, load_config, write_config


def test_load_config_reads_lending_policy(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text(
        "[library]\nname = Town Library\n\n"
        "[lending]\nmax_loans = 3\nloan_days = 21\n\n"
        "[logging]\nlevel = debug\n"
    )

    config = load_config(path)

    assert config.library_name == "Town Library"
    assert config.lending == LendingPolicy(max_loans=3, loan_days=21)
    assert config.logging.level == "DEBUG"


def test_load_config_defaults(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text("[library]\n")

    config = load_config(path)

    assert config.library_name == "My Library"
    assert config.lending.max_loans == 5
    assert config.lending.loan_days == 14
    assert config.logging.level == "INFO"


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.ini")


def test_load_config_rejects_non_positive_policy(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text("[lending]\nmax_loans = 0\n")

    with pytest.raises(ValueError):
        load_config(path)


def test_write_config_roundtrip(tmp_path):
    path = write_config(tmp_path / "data" / "config.ini", "Branch", max_loans=2, loan_days=10)

    config = load_config(path)

    assert config.library_name == "Branch"
    assert config.lending == LendingPolicy(max_loans=2, loan_days=10)


def test_write_config_validates_before_writing(tmp_path):
    path = tmp_path / "config.ini"

    with pytest.raises(ValueError):
        write_config(path, "Branch", loan_days=-1)
    assert not path.exists()


def test_load_config_rejects_non_integer_policy(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text("[lending]\nmax_loans = five\n")

    with pytest.raises(ValueError):
        load_config(path)
