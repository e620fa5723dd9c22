"""CORS policy options and evaluation."""

from corsgate.cors.options import ANY_DOMAIN, CORSOptions, prepare_options
from corsgate.cors.policy import CORSDecision, CORSPolicy, parse_origin

__all__ = [
    "ANY_DOMAIN",
    "CORSDecision",
    "CORSOptions",
    "CORSPolicy",
    "parse_origin",
    "prepare_options",
]
