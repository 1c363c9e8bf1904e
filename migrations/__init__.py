"""
Data upgrade module for the blog.

Upgrades the stored data from the one supported previous release to the
version of this build, and warns the administrator when releases were skipped.
"""

from .runner import UpgradeOrchestrator, UpgradeOutcome, UpgradeResult, upgrade

__all__ = ['UpgradeOrchestrator', 'UpgradeOutcome', 'UpgradeResult', 'upgrade']
