"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Streams file content through several hash algorithms in a single read pass.

Every buffer read from the stream is fed to all accumulators before the next read,
so a file is never rewound or re-read once per algorithm.
"""

import hashlib
import logging
from typing import BinaryIO, Dict, Iterable, Optional, Union

from filesig.core.config import SignatureConfig
from filesig.core.errors import HashComputationError
from filesig.core.models import HashAlgorithm

logger = logging.getLogger(__name__)


class DigestEngine:
    """
    Computes one uppercase hex digest per configured algorithm.
    Holds no per-file state, so one instance can be shared between worker threads.
    """

    def __init__(
            self,
            algorithms: Optional[Iterable[Union[str, HashAlgorithm]]] = None,
            buffer_size: int = SignatureConfig.READ_BUFFER_SIZE
    ):
        self.algorithms = HashAlgorithm.parse_many(algorithms)
        if not self.algorithms:
            raise ValueError("At least one hash algorithm is required")
        if buffer_size <= 0:
            raise ValueError("Buffer size must be positive")
        self.buffer_size = buffer_size

    def compute(self, stream: BinaryIO) -> Dict[HashAlgorithm, str]:
        """
        Read `stream` to the end once and return {algorithm: HEXDIGEST}.

        Raises:
            HashComputationError: If the stream cannot be read to completion.
        """
        accumulators = {
            algorithm: hashlib.new(algorithm.hashlib_name)
            for algorithm in self.algorithms
        }
        try:
            while True:
                chunk = stream.read(self.buffer_size)
                if not chunk:
                    break
                for accumulator in accumulators.values():
                    accumulator.update(chunk)
        except HashComputationError:
            raise
        except OSError as e:
            raise HashComputationError(getattr(stream, "name", "<stream>"), e) from e

        return {
            algorithm: accumulator.hexdigest().upper()
            for algorithm, accumulator in accumulators.items()
        }

    def compute_file(self, path: str) -> Dict[HashAlgorithm, str]:
        """Open `path` and hash its full content."""
        try:
            with open(path, 'rb') as f:
                digests = self.compute(f)
        except HashComputationError:
            raise
        except OSError as e:
            raise HashComputationError(path, e) from e

        logger.debug(f"Hashed {path} with {', '.join(a.value for a in self.algorithms)}")
        return digests
