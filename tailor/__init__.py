"""
TAILOR - Targeted Alignment of Interview-Level Online Resumes

Keeps a single Google Docs resume aligned with job descriptions through small,
reviewable LLM-suggested rewordings, while maintaining a local version log that
can always be reconciled against (and reverted along) the document's own
revision history.

Architecture:
- History Context: Local version log and reconciliation against remote revisions
- Alignment Context: Generation, validation, and application of text replacements
- Documents Context: Document service interface and Google Docs implementation
- Coordination Context: Update, batch, revert, and export workflows
- Intake Context: Job description sources, job queue, and career page monitoring
"""

__version__ = "0.1.0"
