"""
Features Module - Self-contained feature units.

Each feature is a modular unit with its own logic:
- knowledge: chunking, embeddings, vector index, indexing and search
- transcription: speech-to-text pipeline for audio and video Sources
- capture: meeting bots that record live calls
- documents: text extraction from uploaded files
- ingestion: entry points and background dispatch
- database: Source persistence
"""
