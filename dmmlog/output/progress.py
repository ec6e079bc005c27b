"""Terminal progress display for long logging runs."""

from __future__ import annotations

import sys

from tqdm import tqdm

from dmmlog.core.model import UNLIMITED_SAMPLES


class TqdmProgress:
    def __init__(self, total: int = UNLIMITED_SAMPLES) -> None:
        self._bar = tqdm(
            total=None if total >= UNLIMITED_SAMPLES else total,
            unit="sample",
            file=sys.stderr,
            dynamic_ncols=True,
        )

    def update(self, reading: float) -> None:
        self._bar.set_postfix_str(f"{reading}", refresh=False)
        self._bar.update(1)

    def close(self) -> None:
        self._bar.close()

    def __enter__(self) -> TqdmProgress:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class NullProgress:
    def update(self, reading: float) -> None:
        pass

    def close(self) -> None:
        pass

    def __enter__(self) -> NullProgress:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
