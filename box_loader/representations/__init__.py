"""Representation resolution and fetching."""

from box_loader.representations.fetcher import RepresentationFetcher
from box_loader.representations.resolver import RepresentationResolver
from box_loader.representations.resolver import ResolverAction
from box_loader.representations.resolver import TRANSITIONS

__all__ = [
    "RepresentationFetcher",
    "RepresentationResolver",
    "ResolverAction",
    "TRANSITIONS",
]
