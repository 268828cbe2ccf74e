"""
Segmenter
=========
Pairs consecutive markers into content blocks. Block i runs from the end of
marker i to the start of marker i+1, or to end-of-text for the last marker.
"""

from __future__ import annotations

from .models import ContentBlock, Marker


class Segmenter:
    """Slices normalized text into one block per marker."""

    def segment(self, text: str, markers: list[Marker]) -> list[ContentBlock]:
        blocks: list[ContentBlock] = []

        for i, marker in enumerate(markers):
            if i + 1 < len(markers):
                end = markers[i + 1].position
            else:
                end = len(text)

            blocks.append(ContentBlock(
                marker=marker,
                start=marker.end,
                end=end,
                content=text[marker.end:end].strip(),
            ))

        return blocks
