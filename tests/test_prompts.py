from text_refinery.memory import Memory
from text_refinery.refinery.prompts import build_stage_prompt, render_glossary


def test_prompt_layout():
    memory = Memory()
    memory.style_profile.notes = "Warm, plain English."
    memory.glossary.term_map = {"Tehran": "Tehran", "Reza": "Reza Karimi"}
    memory.context_summary.short = "Reza returns home."

    prompt = build_stage_prompt("Copyedit", "Fix grammar.", "The chunk body.", memory, "Previous tail.")

    assert prompt == "\n".join([
        "# MEMORY",
        "Style Profile:",
        "Warm, plain English.",
        "",
        "Glossary:",
        "Tehran = Tehran",
        "Reza = Reza Karimi",
        "",
        "Context Summary:",
        "Reza returns home.",
        "",
        "Last Edited Tail:",
        "Previous tail.",
        "",
        "---",
        "You are performing: Copyedit",
        "Rules: Preserve meaning, do not invent facts, keep tone consistent with Style Profile, "
        "preserve terminology in Glossary.",
        "",
        "Task: Fix grammar.",
        "",
        "Input chunk:",
        "The chunk body.",
        "",
        "Return ONLY the edited chunk (no commentary).",
    ])


def test_empty_memory_sections_stay_in_place():
    prompt = build_stage_prompt("S", "", "body", Memory(), "")
    lines = prompt.split("\n")
    assert lines[:4] == ["# MEMORY", "Style Profile:", "", ""]
    assert lines[lines.index("Last Edited Tail:") + 1] == ""


def test_glossary_keeps_insertion_order():
    assert render_glossary({"b": "2", "a": "1"}) == "b = 2\na = 1"
