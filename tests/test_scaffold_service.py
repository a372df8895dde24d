"""
Tests for the project scaffolder.
"""
import pytest

from app.core.errors import DelegateUnavailable, ValidationError
from app.services.scaffold_service import generate_scaffold

SCAFFOLD = {
    "projectName": "Task Tracker",
    "techStack": "FastAPI, React",
    "summary": "A small task tracker with a REST backend.",
    "fileTree": "task-tracker/\n  backend/\n    main.py\n  frontend/\n    App.jsx",
    "steps": [
        {"id": 1, "title": "Create the project", "description": "Folders.", "type": "command",
         "content": "mkdir -p task-tracker/backend task-tracker/frontend"},
        {"title": "Backend entry point", "type": "Code", "filePath": "backend/main.py",
         "content": "from fastapi import FastAPI\n\napp = FastAPI()\n"},
        {"title": "Folder layout", "type": "file-structure", "content": "task-tracker/"},
        {"title": "Run it", "type": "shell", "content": "uvicorn main:app --reload"},
    ],
}


def test_generate_scaffold(llm, runner):
    llm.queue(SCAFFOLD)

    scaffold = generate_scaffold(runner, "FastAPI, React", "Task tracker", user_id="user_1")

    assert scaffold.project_name == "Task Tracker"
    assert [s.id for s in scaffold.steps] == ["1", "2", "3", "4"]
    assert [s.type for s in scaffold.steps] == ["command", "code", "file_structure", "command"]
    assert scaffold.steps[1].file_path == "backend/main.py"
    assert "Task tracker" in llm.prompt()
    assert "FastAPI, React" in llm.prompt()


def test_unknown_step_type_with_file_path_is_code(llm, runner):
    llm.queue({"projectName": "CLI", "steps": [
        {"id": "a", "title": "Main module", "type": "snippet", "filePath": "cli/main.py", "content": "print(1)"},
    ]})

    scaffold = generate_scaffold(runner, "Python", "A CLI")

    assert scaffold.steps[0].type == "code"
    assert scaffold.steps[0].id == "a"
    assert scaffold.tech_stack == "Python"


def test_listed_tech_stack_is_joined(llm, runner):
    llm.queue({"projectName": "CLI", "techStack": ["Python", "Typer"], "steps": [{"title": "Init"}]})

    assert generate_scaffold(runner, "Python", "A CLI").tech_stack == "Python, Typer"


@pytest.mark.parametrize("tech_stack, idea", [("", "A CLI"), ("Python", "   ")])
def test_blank_input_is_rejected(llm, runner, tech_stack, idea):
    with pytest.raises(ValidationError):
        generate_scaffold(runner, tech_stack, idea)
    assert llm.calls == []


def test_delegate_failure_propagates(llm, runner):
    llm.queue(TimeoutError("read timed out"))

    with pytest.raises(DelegateUnavailable) as exc_info:
        generate_scaffold(runner, "Python", "A CLI")
    assert exc_info.value.feature == "project_scaffold"


def test_scaffold_without_steps_is_rejected(llm, runner):
    llm.queue({"projectName": "Empty", "steps": []})

    with pytest.raises(DelegateUnavailable):
        generate_scaffold(runner, "Python", "A CLI")
