"""Core relay machinery: signing, cancellation, and run orchestration."""
