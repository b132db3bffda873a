"""Applicant accounts and the verification lifecycle."""
