"""Geo-proximity gig search for the Jovi beauty gig marketplace."""
