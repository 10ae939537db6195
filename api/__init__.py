"""HTTP transport for the PSP router."""
