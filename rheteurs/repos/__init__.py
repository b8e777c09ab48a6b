"""
Repository layer for Les Rhéteurs.

All Supabase queries live here and ONLY here. Join shapes are normalized
here too (see normalize.py); nothing above this layer sees raw rows.
"""

from rheteurs.repos.circle_repo import CircleReadingRepo, CircleRepo
from rheteurs.repos.post_repo import PostRepo
from rheteurs.repos.profile_repo import ProfileRepo
from rheteurs.repos.reply_repo import ReplyRepo
from rheteurs.repos.storage_repo import ImageStore

__all__ = [
    "PostRepo",
    "ReplyRepo",
    "ProfileRepo",
    "CircleRepo",
    "CircleReadingRepo",
    "ImageStore",
]
