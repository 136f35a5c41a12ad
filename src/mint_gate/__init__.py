"""mint_gate - tiered, whitelisted NFT mint gate."""

__version__ = "0.1.0"
