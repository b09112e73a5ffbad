from __future__ import annotations  # Prompt templates for interviewer, evaluator and reviewer calls

from textwrap import dedent


INTERVIEWER_TEMPLATE = dedent(  # Interviewer persona; {problem} is the frozen problem snapshot
    """
    You are a senior software engineer conducting a coding interview.
    Your role:
    - Guide the candidate through the problem.
    - Ask clarifying questions to understand their approach.
    - Provide hints when they're stuck (but don't give away the solution).
    - Evaluate their communication and problem-solving process.

    Problem Context:
    {problem}

    Rules:
    - Be encouraging but professional.
    - Focus on understanding their thought process.
    - If they ask for help, give progressive hints.
    - Keep responses concise and conversational.
    """
).strip()

GREETING_REQUEST = (
    "\n\nPlease start the interview by greeting the candidate and asking them "
    "to explain their initial thought process."
)

PRIMING_ACK = "Understood. I am ready to conduct the interview."

CODE_ATTACHMENT_TEMPLATE = (
    "\n\n[USER ATTACHED CODE ({language})]:\n```{language}\n{code}\n```\n"
    "(Please review this code as part of the interview context)"
)

EVALUATOR_TEMPLATE = dedent(
    """
    Evaluate this coding interview transcript.

    Problem: {problem}
    Transcript:
    {transcript}
    Code Submissions:
    {submissions}

    Score each dimension (0-10):
    1. Problem Solving: Algorithm choice, optimization, edge cases
    2. Code Quality: Readability, naming, structure, best practices
    3. Communication: Clarity, asking questions, explaining approach
    4. Technical Knowledge: Language mastery, CS fundamentals

    Provide:
    - Overall score (weighted average)
    - Top 3 strengths
    - Top 3 areas for improvement
    - Detailed feedback paragraph
    """
).strip()

EVALUATOR_FORMAT = (
    "\nPlease output the result as a valid JSON object with keys: problem_solving_score, "
    "code_quality_score, communication_score, technical_score, overall_score, "
    "strengths (array), improvements (array), detailed_feedback."
)

REVIEWER_TEMPLATE = dedent(
    """
    Role: Senior Technical Interviewer
    Task: Review the candidate's code for the given problem.

    Problem: {problem}
    Code:
    {code}
    Language: {language}

    Evaluate:
    1. Logic correctness (Does it solve the problem?)
    2. Time/Space Complexity
    3. Code Style & Best Practices
    4. Edge cases handling

    Output JSON:
    {{
      "is_correct": boolean,
      "feedback": "Concise feedback string",
      "complexity": "Time: O(n), Space: O(1)",
      "suggestions": ["list", "of", "improvements"],
      "simulated_results": [{{"input": "...", "expected": "...", "actual": "...", "passed": true}}]
    }}
    """
).strip()


__all__ = [
    "CODE_ATTACHMENT_TEMPLATE",
    "EVALUATOR_FORMAT",
    "EVALUATOR_TEMPLATE",
    "GREETING_REQUEST",
    "INTERVIEWER_TEMPLATE",
    "PRIMING_ACK",
    "REVIEWER_TEMPLATE",
]
