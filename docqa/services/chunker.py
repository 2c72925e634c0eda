"""Recursive, boundary-seeking text chunking with overlapping windows.

Splits extracted document text into segments of at most ``chunk_size``
characters (800 by default) that share up to ``chunk_overlap`` characters
(200) of trailing context with the previous segment.

The splitter tries separators from coarsest to finest::

    "\\n\\n"  paragraphs
    "\\n"    lines
    ". "    sentences
    " "     words
    ""      characters (last resort)

It picks the coarsest separator present in the text, splits on it, and
recurses with the finer separators into any piece that is still too
large.  Adjacent small pieces are then merged back up to ``chunk_size``.
Separators stay attached to the *start* of the piece that follows them,
so joining pieces never invents or drops characters: every chunk is a
contiguous span of the input (modulo the final whitespace strip).

Pure and deterministic: the same text always yields the same chunks.
"""

from __future__ import annotations

import re

import structlog

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_SEPARATORS: tuple[str, ...] = ("\n\n", "\n", ". ", " ", "")


class RecursiveTextChunker:
    """Splits text into overlapping chunks at the coarsest available boundary.

    Parameters
    ----------
    chunk_size:
        Maximum characters per chunk (default 800).
    chunk_overlap:
        Maximum characters of trailing context carried into the next
        chunk (default 200).  Must be smaller than ``chunk_size``.
    separators:
        Boundary strings, coarsest first.  The last entry should be ``""``
        so any text can be split.
    """

    def __init__(
        self,
        chunk_size: int = 800,
        chunk_overlap: int = 200,
        separators: tuple[str, ...] | list[str] = DEFAULT_SEPARATORS,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap must be in [0, chunk_size), got {chunk_overlap} "
                f"for chunk_size {chunk_size}"
            )
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._separators = list(separators)

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def chunk_overlap(self) -> int:
        return self._chunk_overlap

    def chunk(self, text: str) -> list[str]:
        """Split *text* into stripped, non-empty chunks in document order."""
        if not text or not text.strip():
            return []

        pieces = self._split_text(text, self._separators)
        chunks = [piece.strip() for piece in pieces]
        chunks = [c for c in chunks if c]

        logger.debug(
            "text_chunked",
            text_length=len(text),
            chunks=len(chunks),
            chunk_size=self._chunk_size,
            chunk_overlap=self._chunk_overlap,
        )
        return chunks

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _split_text(self, text: str, separators: list[str]) -> list[str]:
        """Split on the coarsest separator present, recursing into oversized pieces."""
        separator = separators[-1]
        finer: list[str] = []
        for idx, candidate in enumerate(separators):
            if candidate == "":
                separator = candidate
                break
            if candidate in text:
                separator = candidate
                finer = separators[idx + 1 :]
                break

        splits = self._split_keeping_separator(text, separator)

        final_chunks: list[str] = []
        small_splits: list[str] = []
        for piece in splits:
            if len(piece) < self._chunk_size:
                small_splits.append(piece)
                continue
            if small_splits:
                final_chunks.extend(self._merge_splits(small_splits))
                small_splits = []
            if finer:
                final_chunks.extend(self._split_text(piece, finer))
            else:
                final_chunks.append(piece)

        if small_splits:
            final_chunks.extend(self._merge_splits(small_splits))
        return final_chunks

    @staticmethod
    def _split_keeping_separator(text: str, separator: str) -> list[str]:
        """Split so each separator prefixes the piece that follows it."""
        if separator == "":
            return list(text)

        parts = re.split(f"({re.escape(separator)})", text)
        # parts = [head, sep, body, sep, body, ...]
        splits = [parts[0]]
        splits.extend(parts[i] + parts[i + 1] for i in range(1, len(parts) - 1, 2))
        return [s for s in splits if s]

    def _merge_splits(self, splits: list[str]) -> list[str]:
        """Greedily pack pieces into windows, carrying overlap forward.

        When adding the next piece would exceed ``chunk_size``, the current
        window is emitted and pieces are dropped from its front until what
        remains fits in ``chunk_overlap`` and leaves room for the next
        piece.  The survivors become the head of the next window.
        """
        merged: list[str] = []
        window: list[str] = []
        total = 0

        for piece in splits:
            length = len(piece)
            if total + length > self._chunk_size and window:
                merged.append("".join(window))
                while window and (
                    total > self._chunk_overlap or total + length > self._chunk_size
                ):
                    total -= len(window[0])
                    window.pop(0)
            window.append(piece)
            total += length

        if window:
            merged.append("".join(window))
        return merged
