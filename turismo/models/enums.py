from __future__ import annotations

from enum import Enum


class AuthProvider(str, Enum):
    local = "local"
    google = "google"


class CommentReactionType(str, Enum):
    like = "like"
    love = "love"
    laugh = "laugh"
    angry = "angry"
    sad = "sad"


class PhotoReactionType(str, Enum):
    like = "like"
    love = "love"
    laugh = "laugh"
    amazing = "amazing"
    beautiful = "beautiful"
