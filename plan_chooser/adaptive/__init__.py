"""
Adaptive quiz engine.

Responsibilities:
- Hold the question bank and map answers to plan predicates and preferences.
- Measure how well each answer splits the plan catalog (discriminative power).
- Order the remaining questions for a quiz session.
- Keep anonymous aggregate statistics per question.
"""
