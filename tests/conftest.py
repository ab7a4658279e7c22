"""
Shared fixtures for signature engine tests.
Creates isolated temporary directories with controlled test files.
"""
import pytest
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict
import sys

# Add src/ to sys.path so the 'filesig' package is importable without installation
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from filesig.core.models import HashAlgorithm, SignatureRecord  # noqa: E402


@pytest.fixture
def temp_dir():
    """Creates isolated temporary directory, auto-cleanup after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_files(temp_dir) -> Dict[str, Path]:
    """
    Creates controlled test files for signature scenarios:
    - 2 identical files (same digests)
    - 1 'abc' file with published digest vectors
    - 1 empty file (must never produce a signature)
    - 1 hidden dot-file (skipped unless hidden files are requested)
    - 1 file in a subdirectory (only found when recursing)
    """
    files = {}

    content_a = b"A" * 1024
    files["same_a"] = temp_dir / "same_a.txt"
    files["same_b"] = temp_dir / "same_b.txt"
    files["same_a"].write_bytes(content_a)
    files["same_b"].write_bytes(content_a)

    files["abc"] = temp_dir / "ABC.bin"
    files["abc"].write_bytes(b"abc")

    files["empty"] = temp_dir / "empty.txt"
    files["empty"].write_bytes(b"")

    files["hidden"] = temp_dir / ".hidden.cfg"
    files["hidden"].write_bytes(b"secret=1\n")

    subdir = temp_dir / "sub"
    subdir.mkdir()
    files["nested"] = subdir / "nested.dat"
    files["nested"].write_bytes(b"B" * 2048)

    return files


# Published vectors for the three-byte message "abc"
ABC_DIGESTS = {
    HashAlgorithm.MD5: "900150983CD24FB0D6963F7D28E17F72",
    HashAlgorithm.SHA1: "A9993E364706816ABA3E25717850C26C9CD0D89D",
    HashAlgorithm.SHA256: "BA7816BF8F01CFEA414140DE5DAE2223B00361A396177A9CB410FF61F20015AD",
    HashAlgorithm.SHA512: (
        "DDAF35A193617ABACC417349AE20413112E6FA4E89A97EA20A9EEEE64B55D39A"
        "2192992A274FC1A836BA3C23A3FEEBBD454D4423643CE80E2A9AC94FA54CA49F"
    ),
}

# 1024 bytes of b"A"
A1024_MD5 = "D47B127BC2DE2D687DDC82DAC354C415"
A1024_SHA1 = "746C3F4D286C531E065E8AF76E0AC0868831C6B4"


def make_signature(filename: str = "abc.bin", digests=None, size_bytes: int = 3, **kwargs) -> SignatureRecord:
    """Build a SignatureRecord without touching the filesystem."""
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return SignatureRecord(
        filename=filename,
        path_relative_to_root=kwargs.pop("path_relative_to_root", filename),
        size_bytes=size_bytes,
        created_utc=now,
        modified_utc=now,
        digests=digests if digests is not None else dict(ABC_DIGESTS),
        entry_timestamp=now,
        **kwargs
    )


@pytest.fixture
def signature_factory():
    return make_signature
