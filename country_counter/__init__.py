"""Country Counter - visit scoreboard and map keyed by visitor location."""
