"""
Component modules for Phase 1.

Each module provides the idempotent steps that bring one part of the host
(system packages, Docker Engine, GitHub CLI, Watchtower) to its target state.
"""
