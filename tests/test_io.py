import time
from concurrent.futures import ThreadPoolExecutor

from multi_lang_runner import LanguageRegistry, RunnerPolicy, execute_code, run_code
from conftest import leftover_workspaces, requires


def test_python_stdout_is_returned_exactly(registry: LanguageRegistry, policy: RunnerPolicy) -> None:
    """Verify a deterministic program's output comes back verbatim."""
    result = execute_code("python", "print('hi')", registry=registry, policy=policy)

    assert result == "hi\n"
    assert leftover_workspaces(policy) == []


def test_python_escaped_newlines(registry: LanguageRegistry, policy: RunnerPolicy) -> None:
    """Verify JSON-escaped newlines are turned into real line breaks."""
    code = "print('Hello from Python!')\\nresult = 10 * 3.5\\nprint(f'10 multiplied by 3.5 equals {result}')"
    result = execute_code("python", code, registry=registry, policy=policy)

    assert result == "Hello from Python!\n10 multiplied by 3.5 equals 35.0\n"


def test_python_runtime_error(registry: LanguageRegistry, policy: RunnerPolicy) -> None:
    """Verify uncaught exceptions surface as a non-zero exit with the traceback."""
    outcome = run_code("python", "print('before')\nx = 1 / 0", registry=registry, policy=policy)

    assert outcome.ok is False
    assert outcome.text.startswith("Execution failed with exit code 1:\n")
    assert "before" in outcome.text
    assert "ZeroDivisionError" in outcome.text
    assert leftover_workspaces(policy) == []


def test_python_timeout(registry: LanguageRegistry, policy: RunnerPolicy) -> None:
    """Verify a never-ending program is stopped at the wall-clock limit."""
    short = RunnerPolicy(timeout_seconds=1, workspace_dir=policy.workspace_dir)
    started = time.monotonic()
    result = execute_code("python", "while True:\n    pass", registry=registry, policy=short)

    assert result == "Execution timed out after 1 seconds"
    assert time.monotonic() - started < 5
    assert leftover_workspaces(policy) == []


def test_program_writes_stay_in_workspace(registry: LanguageRegistry, policy: RunnerPolicy) -> None:
    """Verify files a program creates in its cwd are removed with the workspace."""
    code = "open('scratch.txt', 'w').write('x')\nimport os\nprint(sorted(p for p in os.listdir('.') if p.endswith('.txt')))"
    result = execute_code("python", code, registry=registry, policy=policy)

    assert result == "['scratch.txt']\n"
    assert leftover_workspaces(policy) == []


@requires("node")
def test_javascript(policy: RunnerPolicy) -> None:
    """Verify JavaScript runs through node."""
    assert execute_code("javascript", "console.log('Hello from Node.js!');", policy=policy) == "Hello from Node.js!\n"


@requires("javac", "java")
def test_java_hello_world(policy: RunnerPolicy) -> None:
    """Verify Java compiles and runs the declared public class."""
    code = (
        "public class HelloWorld {\n"
        "    public static void main(String[] args) {\n"
        "        System.out.println(\"The sum of 5 and 7 is: \" + (5 + 7));\n"
        "    }\n"
        "}"
    )
    assert execute_code("java", code, policy=policy) == "The sum of 5 and 7 is: 12\n"
    assert leftover_workspaces(policy) == []


@requires("javac", "java")
def test_java_without_public_class_uses_main(policy: RunnerPolicy) -> None:
    """Verify the default type name lets a `class Main` program run."""
    code = "class Main {\n    public static void main(String[] a) {\n        System.out.println(\"ok\");\n    }\n}"
    assert execute_code("java", code, policy=policy) == "ok\n"


@requires("javac", "java")
def test_java_compile_error_never_runs(policy: RunnerPolicy) -> None:
    """Verify diagnostics are returned and the program is not started."""
    code = (
        "public class Broken {\n"
        "    public static void main(String[] args) {\n"
        "        System.out.println(\"ran\")\n"
        "    }\n"
        "}"
    )
    result = execute_code("java", code, policy=policy)

    assert result.startswith("Compilation failed: ")
    assert len(result) > len("Compilation failed: ")
    assert "ran\n" not in result
    assert leftover_workspaces(policy) == []


@requires("g++")
def test_cpp_hello_world(policy: RunnerPolicy) -> None:
    """Verify C++ compiles to a binary and runs."""
    code = "#include <iostream>\nint main() {\n    std::cout << \"Hello from C++!\" << std::endl;\n    return 0;\n}"
    assert execute_code("cpp", code, policy=policy) == "Hello from C++!\n"
    assert leftover_workspaces(policy) == []


@requires("g++")
def test_cpp_missing_semicolon(policy: RunnerPolicy) -> None:
    """Verify a syntax error is reported as a compilation failure."""
    code = "#include <cstdio>\nint main() {\n    std::puts(\"ran\")\n    return 0;\n}"
    result = execute_code("cpp", code, policy=policy)

    assert result.startswith("Compilation failed: ")
    assert "error" in result
    assert leftover_workspaces(policy) == []


@requires("g++")
def test_cpp_timeout(policy: RunnerPolicy) -> None:
    """Verify a compiled infinite loop is killed at the limit."""
    short = RunnerPolicy(timeout_seconds=1, workspace_dir=policy.workspace_dir)
    result = execute_code("cpp", "int main() { volatile int x = 0; for (;;) { x++; } }", policy=short)

    assert result == "Execution timed out after 1 seconds"
    assert leftover_workspaces(policy) == []


def test_concurrent_requests_get_isolated_workspaces(registry: LanguageRegistry, policy: RunnerPolicy) -> None:
    """Verify parallel calls never see each other's output or files."""
    with ThreadPoolExecutor(max_workers=16) as pool:
        futures = {
            i: pool.submit(execute_code, "python", f"print({i})", policy=policy, registry=registry)
            for i in range(16)
        }
        results = {i: future.result() for i, future in futures.items()}

    assert results == {i: f"{i}\n" for i in range(16)}
    assert leftover_workspaces(policy) == []


@requires("javac", "java")
def test_java_timeout(policy: RunnerPolicy) -> None:
    """Verify a Java infinite loop is killed at the limit."""
    short = RunnerPolicy(timeout_seconds=2, workspace_dir=policy.workspace_dir)
    code = "public class Spin {\n    public static void main(String[] args) {\n        while (true) {}\n    }\n}"
    result = execute_code("java", code, policy=short)

    assert result == "Execution timed out after 2 seconds"
    assert leftover_workspaces(policy) == []
