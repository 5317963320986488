"""Marketplace pricing data sources."""

from .bitskins import BitSkinsClient
from .csfloat import CSFloatClient
from .steam_market import SteamMarketClient

__all__ = ['BitSkinsClient', 'CSFloatClient', 'SteamMarketClient']
