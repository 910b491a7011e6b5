"""
gitbind commands: argument schemas wired to an execution context.

Overview
- Command: base class. A subclass declares its schema as the class attribute
  `arguments` (usually through @define) and, optionally, the exit statuses
  that do not count as failures. Calling an instance binds the arguments,
  hands the tokens to the execution context and checks the exit status.
- ExecutionContext: protocol of the collaborator that actually spawns git.
  gitbind ships no implementation; any object with a compatible command()
  method works (a Git repository wrapper, a test double, ...).
- CommandResult: what the execution context returns.

Declaring a command:
    >>> class Add(Command):
    ...     @define
    ...     def arguments(a):
    ...         a.literal("add")
    ...         a.flag_option("all")
    ...         a.flag_option("force")
    ...         a.operand("paths", repeatable=True, default=[], separator="--")
    ...
    >>> Add(context)("a.txt", force=True)   # runs: add --force -- a.txt

The classes at the bottom of this module are the stock git commands built on
this base.
"""
import logging
import re
import shlex
from typing import NamedTuple, Protocol, runtime_checkable

from .arguments import *
from .faults import *
from .utils import *

LOGGER = logging.getLogger(__name__)


class CommandResult(NamedTuple):
    """
    Captured outcome of one git invocation.
    """
    tokens: tuple
    status: int
    stdout: str = ""
    stderr: str = ""


@runtime_checkable
class ExecutionContext(Protocol):
    """
    Collaborator that runs git.

    command() receives the rendered tokens (without the git binary), the
    command's execution options (timeout, chdir, ...) and
    raise_on_failure=False; exit-status policy belongs to the command.
    """
    def command(self, *tokens, **options) -> CommandResult: ...


class CommandType(type):
    """
    Metaclass validating the declarative attributes of Command subclasses.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens),
      e.g. BranchDelete -> "branch-delete", for logs and messages.
    - Check at class-creation time that `arguments`, when declared, is an
      Arguments schema, and freeze it.
    - Check that `allowed_exit_status` is a non-empty range of integers.
    """

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            },
        )

        if (arguments := namespace.get("arguments", Unset)) is not Unset:
            if not isinstance(arguments, Arguments):
                raise TypeError(f"{self.__typename__} 'arguments' must be an Arguments schema")
            arguments.freeze()

        if "allowed_exit_status" in namespace:
            match status := namespace["allowed_exit_status"]:
                case range() if status.step == 1 and len(status):
                    pass
                case range():
                    trigger(InvalidExitStatusError(
                        f"allowed_exit_status range must not be empty and must have a step of 1 ({name})"
                    ))
                case _:
                    trigger(InvalidExitStatusError(f"allowed_exit_status expects a range ({name})"))

        return self


class Command(metaclass=CommandType):
    """
    Base class for git commands.

    Class attributes
    - arguments: the frozen Arguments schema of the command.
    - allowed_exit_status: range of exit statuses treated as success
      (git diff uses range(0, 2), git fsck range(0, 8)).
    """

    arguments = Unset
    allowed_exit_status = range(0, 1)

    def __init__(self, context, /):
        if not isinstance(context, ExecutionContext):
            raise TypeError(f"{type(self).__typename__} context must provide a command() method")
        self._context = context

    def __repr__(self):
        return f"{type(self).__typename__}(context={self._context!r})"

    @property
    def context(self):
        return self._context

    def bind(self, *positionals, **options):
        """
        Bind a call against the command's schema without running git.
        """
        if not isinstance(arguments := type(self).arguments, Arguments):
            trigger(MissingArgumentsError(f"arguments not defined for {type(self).__name__}"))
        return arguments.bind(*positionals, **options)

    def __call__(self, *positionals, **options):
        """
        Bind the arguments, run git and return its CommandResult.

        Raises
        - BindError: the call does not match the schema (git is not run).
        - CommandFailedError: git exited outside allowed_exit_status.
        """
        return self._run(self.bind(*positionals, **options))

    def _run(self, bound, /, **options):
        LOGGER.debug("running git %s", shlex.join(bound))
        # later sources win; raise_on_failure always stays False
        options = dict(bound.execution_options) | options | {"raise_on_failure": False}
        result = self._context.command(*bound, **options)
        return self._verify(result)

    def _verify(self, result, /):
        if result.status in type(self).allowed_exit_status:
            LOGGER.debug("git %s exited with status %d", type(self).__typename__, result.status)
            return result
        LOGGER.warning(
            "git %s exited with status %d (allowed: %d..%d)",
            type(self).__typename__,
            result.status,
            type(self).allowed_exit_status.start,
            type(self).allowed_exit_status.stop - 1,
        )
        trigger(CommandFailedError(
            f"git {shlex.join(result.tokens)} exited with status {result.status}",
            result=result,
        ))


class Add(Command):
    @define
    def arguments(a):
        a.literal("add")
        a.flag_option("all")
        a.flag_option("force")
        a.operand("paths", repeatable=True, default=[], separator="--")


class Mv(Command):
    """
    git mv <source>... <destination>
    """

    @define
    def arguments(a):
        a.literal("mv")
        a.literal("--verbose")
        a.flag_option("force", "f")
        a.flag_option("dry_run", "n")
        a.flag_option("k")
        a.operand("sources", repeatable=True, required=True, separator="--")
        a.operand("destination", required=True)


class BranchDelete(Command):
    """
    git branch --delete; exits 1 when some branches could not be deleted.
    """

    @define
    def arguments(a):
        a.literal("branch")
        a.literal("--delete")
        a.flag_option("force", "f")
        a.flag_option("remotes", "r")
        a.operand("branch_names", repeatable=True, required=True)

    allowed_exit_status = range(0, 2)


class CheckoutFiles(Command):
    """
    git checkout [<tree-ish>] -- <pathspec>...

    tree_ish is required in principle but may be passed as None to restore
    from the index.
    """

    @define
    def arguments(a):
        a.literal("checkout")
        a.flag_option("force", "f")
        a.flag_option("ours")
        a.flag_option("theirs")
        a.flag_option("merge", "m")
        a.value_option("conflict", inline=True)
        a.flag_option("overlay", negatable=True)
        a.value_option("pathspec_from_file", inline=True)
        a.flag_option("pathspec_file_nul")
        a.operand("tree_ish", required=True, allow_nil=True)
        a.operand("paths", repeatable=True, separator="--")
        a.conflicts("ours", "theirs")


class CheckoutIndex(Command):
    @define
    def arguments(a):
        a.literal("checkout-index")
        a.flag_option("index", "u")
        a.flag_option("all", "a")
        a.flag_option("force", "f")
        a.flag_option("no_create", "n")
        a.value_option("prefix", inline=True)
        a.value_option("stage", inline=True)
        a.flag_option("temp")
        a.flag_option("ignore_skip_worktree_bits")
        a.operand("file", repeatable=True, separator="--")
        a.allowed_values("stage", ("1", "2", "3", "all"))
        a.conflicts("all", "file")


class CatFileObjectMeta(Command):
    """
    git cat-file --batch-check, fed through stdin.

    Object names are allocated like operands but never rendered; they are
    written to git's stdin one per line instead.
    """

    @define
    def arguments(a):
        a.literal("cat-file")
        a.literal("--batch-check")
        a.flag_option("batch_all_objects")
        a.flag_option("unordered")
        a.flag_option("follow_symlinks")
        a.flag_option("allow_unknown_type")
        a.execution_option("timeout")
        a.operand("objects", repeatable=True, skip_cli=True)
        a.conflicts("objects", "batch_all_objects")
        a.requires_one_of("objects", "batch_all_objects")

    def __call__(self, *positionals, **options):
        bound = self.bind(*positionals, **options)
        return self._run(bound, input="".join(f"{name}\n" for name in bound["objects"]))


class Commit(Command):
    @define
    def arguments(a):
        a.literal("commit")
        a.flag_option("all", "add_all")
        a.flag_option("allow_empty")
        a.flag_option("no_verify")
        a.flag_option("allow_empty_message")
        a.value_option("author", inline=True)
        a.value_option("message", inline=True, allow_empty=True)
        a.value_option("date", inline=True, type=str)
        a.flag_option("amend", flag=("--amend", "--no-edit"))
        a.flag_or_value_option("gpg_sign", inline=True, negatable=True)
        a.key_value_option("trailer", key_separator=": ", inline=True)
        a.execution_option("timeout")


class DiffRaw(Command):
    """
    git diff --raw with the fixed companion flags the raw parser relies on;
    exits 1 when differences were found.
    """

    @define
    def arguments(a):
        a.literal("diff")
        a.literal("--raw")
        a.literal("--numstat")
        a.literal("--shortstat")
        a.literal("--src-prefix=a/")
        a.literal("--dst-prefix=b/")
        a.flag_option("cached", "staged")
        a.flag_option("merge_base")
        a.flag_option("no_index")
        a.flag_or_value_option("find_renames", "M", inline=True)
        a.flag_or_value_option("find_copies", "C", inline=True)
        a.flag_option("find_copies_harder")
        a.flag_or_value_option("dirstat", inline=True)
        a.operand("commit1")
        a.operand("commit2")
        a.value_option("pathspecs", as_operand=True, separator="--", repeatable=True)
        a.conflicts("cached", "no_index")

    allowed_exit_status = range(0, 2)


class Fsck(Command):
    @define
    def arguments(a):
        a.literal("fsck")
        a.literal("--no-progress")
        a.flag_option("tags")
        a.flag_option("root")
        a.flag_option("unreachable")
        a.flag_option("cache")
        a.flag_option("no_reflogs")
        a.flag_option("full", negatable=True)
        a.flag_option("strict")
        a.flag_option("lost_found")
        a.flag_option("dangling", negatable=True)
        a.flag_option("connectivity_only")
        a.flag_option("name_objects", negatable=True)
        a.flag_option("references", negatable=True)
        a.operand("object", repeatable=True)

    # 1..7 report problems found in the repository, not a failure to run
    allowed_exit_status = range(0, 8)


__all__ = (
    "CommandResult",
    "ExecutionContext",
    "Command",
    "Add",
    "Mv",
    "BranchDelete",
    "CheckoutFiles",
    "CheckoutIndex",
    "CatFileObjectMeta",
    "Commit",
    "DiffRaw",
    "Fsck",
)
