# File: podscribe/core/database/base.py

from sqlalchemy.orm import declarative_base

# The shared registry. All feature models (Job, Transcript, TranscriptSegment) inherit from this.
Base = declarative_base()
