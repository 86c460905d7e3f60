# evoloop

evoloop runs a small self-improvement loop over a local Git project.
It works out how the project is tested, linted and type-checked, runs
those checks and turns each failure into an issue. A patch generator
that you supply is then asked for a fix, and the fix is tried out in a
throw-away copy of the project before anything touches the real tree.
Issues, executions, evaluations and hook runs can be kept in a SQLite
database.

The package has no third-party dependencies. The checks it runs, the
`git` command and the `patch` command must be installed on the machine.

## The loop

1. **Inspect**: `ProjectInspectionService().inspect(path)` returns a
   `ProjectContext` with the current branch, whether the tree is dirty,
   and the detected test, lint and type-check commands (chosen from the
   presence of `go.mod`, `package.json`, `tsconfig.json` or
   `pyproject.toml`). A directory without a `.git` directory raises
   `NotAGitRepositoryError`.
2. **Measure**: `QualityMetricCollector().collect(context)` runs those
   commands in the project root and returns a `QualityMetricSnapshot`.
   A command that is not set counts as passing; a command whose program
   cannot be found is marked as a missing tool.
3. **Analyse**: `SelfImprovementAnalysisService(memory_repo).analyze(snapshot)`
   turns failures into `ImplementationIssue` objects, with the tool
   output cut to 2000 characters. Missing tools become environment
   issues, which are never proposed for patching. When an
   `ImprovementMemoryRepository` is given, a category that has failed
   more than 70% of the time is lowered by two priority steps, and one
   that has failed less than 30% of the time is raised by one (never
   above priority 1).
4. **Select**: `IssueSelector(max_attempts, cooldown_minutes).select_next(issues)`
   picks the proposable issue with the lowest priority number, then the
   fewest attempts, skipping issues that have used up their attempts or
   are still cooling down. It returns `None` when nothing is eligible.
5. **Propose**: `ImplementationProposalService(client, artifacts_path).propose(issue, project_root)`
   reads the files named in the issue description (up to 10,000 bytes
   each and 50,000 in all), calls `client.generate_patch(context)`, and
   saves the prompt under `prompts/` and the patch under `patches/` in
   the artifacts directory. It returns a completed `ExecutionRecord`; on
   failure it raises `ProposalError`, whose `record` attribute holds the
   failed record.
6. **Evaluate**: `SelfImprovementEvaluationService(max_files=5, max_lines=200, evaluation_mode="sandbox").evaluate(record, project_context, validate_commands)`
   copies the project (leaving out `.git`, `node_modules`, `vendor` and
   `.evoloop`), applies the patch with `patch -p1`, runs the checks in
   the copy (or, in `"validate_only"` mode, only the given validate
   commands), enforces the file and line limits, and returns an
   `EvaluationReport` that is either accepted or rejected with reasons.
   A patch that cannot be read, or a project that cannot be copied,
   raises `EvaluationError`.
7. **Hooks**: `HookExecutor().execute(hook, execution_id)` runs a
   `PostApplyHook` only if its command is on the hook's allowlist, with
   a timeout (30 seconds when none is set), and returns a
   `HookExecutionRecord` with the exit code, output, duration and
   whether it timed out. A command that is not on the list, or an empty
   list, raises `HookNotAllowedError`.

## Storage

```python
from evoloop.database import open_database
from evoloop.issue_repository import ImplementationIssueRepository
from evoloop.execution_history_repository import ExecutionHistoryRepository
from evoloop.evaluation_report_repository import EvaluationReportRepository
from evoloop.history_query import ExecutionHistoryQueryService

db = open_database(".evoloop/evoloop.db")

issues = ImplementationIssueRepository(db)
executions = ExecutionHistoryRepository(db)
evaluations = EvaluationReportRepository(db)

for issue in issues.find_open_proposable():
    print(issue.issue_priority, issue.issue_title)

summary = ExecutionHistoryQueryService(issues, executions, evaluations).query_all()
print(summary.to_dict())
```

`open_database` creates the parent directory and the tables when they
do not exist yet; `":memory:"` gives an in-memory database. Looking up a
record by id or pattern key that is not there raises
`RecordNotFoundError`, while `find_by_dedup_key` returns `None` when no
open issue carries the key. `HookExecutionRepository` and
`ImprovementMemoryRepository` store hook runs and per-category success
and failure counts in the same database.

## A patch generator

Any object with a `generate_patch(context)` method that takes a
`PromptContext` and returns a `PatchResult` will do:

```python
from evoloop.models import PatchResult
from evoloop.proposal import LanguageModelClient


class MyClient(LanguageModelClient):
    def generate_patch(self, context):
        diff = ...  # produce a unified diff for context.issue_title
        return PatchResult(patch_content=diff, raw_output=diff)
```

## What is not included

evoloop is a library only. It has no command-line program, no
configuration file loader and no ready-made patch generator: you wire
the services together yourself and supply your own `LanguageModelClient`.
Selection limits, evaluation limits and hooks are passed in as plain
arguments and `PostApplyHook` objects.