"""Auction core: storage, registry, auctions, session and configuration."""
