"""
Integrity — content hashing, manifest construction, and verification.

Submodules:
    hashing           digest / byte length of rendered text
    manifest_builder  manifest over an output set
    verifier          recompute digests of a written directory
"""
