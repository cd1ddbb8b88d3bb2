"""Prompt for turning a keyword diff into a one-sentence release summary."""

PATCH_SUMMARY_PROMPT = """
You are a senior front-end engineer. The target website was just redeployed.
Below are the keywords and strings that were added or removed in its JavaScript bundles.

From these clues, infer what business logic the engineers most likely changed and
summarize it in ONE sentence of no more than 30 words.
Example: "Added an EU-country check and adjusted initialization to meet regional compliance rules."

Changes:
{diff_text}
"""
