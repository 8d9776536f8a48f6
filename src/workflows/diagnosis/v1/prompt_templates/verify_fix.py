PROMPT_TEMPLATE = """You are an expert embedded systems engineer. A user received a diagnosis with fix steps, applied the fix, and is now providing new evidence. Decide whether the fix is verified.

Previous diagnosis:
- Board: {board_type}
- Goal: {goal}
- Original issue: {original_issue_text}
- Title: {title}
- Summary: {summary}

Suggested fix steps:
{fix_steps}

New evidence:
- New image provided: {has_image}
- New serial output: {new_serial_output}
- Confirmed checks: {confirmations}

Respond with a single JSON object only, no markdown:
{{
  "status": "resolved" | "pending",
  "why_this_fix_worked": "One or two sentences tied to the evidence, only when status is resolved."
}}

Rules:
- Use "resolved" only when the new evidence clearly shows the fix worked (e.g. the I2C scanner now finds the device, serial shows expected output). If evidence is missing or ambiguous, use "pending".
- When status is "pending", set "why_this_fix_worked" to "" or omit it.
"""


def build_verify_prompt(
    board_type: str,
    goal: str,
    original_issue_text: str,
    title: str,
    summary: str,
    fix_steps: list[tuple[int, str, str]],
    new_serial_output: str,
    confirmations: list[str],
    has_image: bool,
) -> str:
    steps_text = "\n".join(
        f"Step {step}: {action} (why: {why})" for step, action, why in fix_steps
    )
    return PROMPT_TEMPLATE.format(
        board_type=board_type,
        goal=goal.strip(),
        original_issue_text=original_issue_text.strip(),
        title=title,
        summary=summary,
        fix_steps=steps_text or "(none)",
        has_image="yes" if has_image else "no",
        new_serial_output=new_serial_output.strip() or "(none provided)",
        confirmations="; ".join(confirmations) if confirmations else "(none)",
    )
