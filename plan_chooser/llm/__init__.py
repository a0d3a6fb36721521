"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build prompts from user answers and the already ranked plans.
- Call Groq LLM for one-sentence plan explanations.
- Graceful fallback when the LLM is unavailable or returns invalid output.
"""
