RESPONSE_FORMAT = """\
Structure your answer with the following tags.

<plan>
1. First step
2. Second step
</plan>

To modify an existing file:
<file path="relative/path/file.ext">
<<<<<<< ORIGINAL
original code to replace (exactly as it is in the file)
=======
new code replacing the original
>>>>>>> MODIFIED
</file>

To create a new file:
<new_file path="relative/path/new_file.ext">
full content of the new file
</new_file>

IMPORTANT: the code in ORIGINAL must match the existing code EXACTLY for the
replacement to work.
"""

AGENT_SYSTEM_PROMPT = (
    "You are an expert programming assistant. You analyse codebases and "
    "propose modifications. Be precise and concise.\n\n" + RESPONSE_FORMAT
)

CHAT_SYSTEM_PROMPT = (
    "You are an expert programming assistant running in a terminal. You "
    "analyse codebases and propose modifications. Be concise and precise.\n\n"
    + RESPONSE_FORMAT
    + "\nIf you are not proposing modifications, just answer in plain text.\n"
)

PLAN_ONLY_NOTE = (
    "\nNOTE: PLAN mode only. Propose a detailed plan without providing code "
    "modifications."
)

AUTO_MODE_NOTE = "\nNOTE: AUTO mode. Your file changes will be applied without confirmation."


def agent_user_prompt(context: str, instruction: str, plan_only: bool = False) -> str:
    prompt = f"CODEBASE:\n{context}\n\nINSTRUCTION: {instruction}\n"
    if plan_only:
        prompt += PLAN_ONLY_NOTE
    return prompt


def chat_system_prompt(context: str) -> str:
    if not context:
        return CHAT_SYSTEM_PROMPT
    return f"{CHAT_SYSTEM_PROMPT}\n\nCODEBASE:\n{context}"
