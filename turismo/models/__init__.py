from turismo.models.users import User, Profile
from turismo.models.places import Place
from turismo.models.ratings import PlaceRating
from turismo.models.comments import Comment, CommentReaction
from turismo.models.photos import PhotoReaction, UserPhoto

__all__ = [
    "User",
    "Profile",
    "Place",
    "PlaceRating",
    "Comment",
    "CommentReaction",
    "UserPhoto",
    "PhotoReaction",
]
