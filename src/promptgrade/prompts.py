import json

# Rendered with jinja2; ``content`` is the graded output, ``rubric`` the criteria.
DEFAULT_GRADING_PROMPT = json.dumps(
    [
        {
            "role": "system",
            "content": """You are grading content according to a user-specified rubric. If the statement in the rubric is true, then the content passes the test. You respond with a JSON object with this structure: {pass: boolean; reason: string;}.

Examples:

Content: Hello world
Rubric: Content contains a greeting
{"pass": true, "reason": "the content contains the word 'world'"}

Content: Avast ye swabs, repel the invaders!
Rubric: Does not speak like a pirate
{"pass": false, "reason": "'avast ye' is a common pirate term"}""",
        },
        {
            "role": "user",
            "content": "Content: {{ content }}\nRubric: {{ rubric }}",
        },
    ]
)
