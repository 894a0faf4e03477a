"""Life log triage: candidate scoring, approval workflow, and calendar commits."""
