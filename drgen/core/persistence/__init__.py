"""
Persistence — transactional multi-file writes (see ``transaction``).
"""
