"""Edit overlay entity — sparse user edits over machine-generated chunk text."""

from __future__ import annotations

from pydantic import BaseModel, Field

from whisper_session.l1_entities.transcript import TranscriptChunk


class EditOverlay(BaseModel):
    """Maps chunk index to edited text. A missing entry means "use the original"."""

    edits: dict[int, str] = Field(default_factory=dict)

    def reset(self, chunks: list[TranscriptChunk]) -> None:
        """Re-seed every entry with the chunk's original text."""
        self.edits = {i: chunk.text for i, chunk in enumerate(chunks)}

    def text_for(self, index: int, chunks: list[TranscriptChunk]) -> str:
        if index in self.edits:
            return self.edits[index]
        if 0 <= index < len(chunks):
            return chunks[index].text
        return ''
