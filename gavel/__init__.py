"""
Gavel

A single-tenant auction marketplace core:
- Credential store and session gate
- Auction repository over a local key-value store
- Bidding engine with strict price monotonicity
- Expiry sweeper closing auctions past their end time
"""
