"""Voice-guided workout playback: document parser and narration sequencer."""
