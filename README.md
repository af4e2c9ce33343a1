# loomrt

Building blocks for running programs in the Loom pipeline language: the
value model, variable scopes, operators, CSV handling, built-in directives,
capability path resolution, file operations and an undo journal for file
changes. It uses only the standard library.

## Modules

- `loomrt.errors`: `LoomError`, the base of every runtime failure, and its
  subclasses `FilterRejected`, `UnauthorizedAccess`, `DeniedByDenyGlobs` and
  `RestrictedOperation`. `is_security_denial()` is true for the last three.
- `loomrt.values`: runtime values are plain Python objects (`str`, `int` /
  `float`, `bool`, `list`, `dict`, `None`), plus `PathValue` for paths.
  `as_string` renders a value, `as_path` finds the path a value stands for,
  and `get_member` looks up `value.member` (a path's `name`, a string's
  `length`, a record's key, matched without regard to ASCII case as a
  fallback). `Environment` is a stack of scopes with `push_scope`,
  `pop_scope`, `set`, `get` (raises `KeyError` when unbound),
  `register_function`, `get_function` and `extract_globals`.
- `loomrt.operators`: `eval_binary_op` for `+ - * / == != > < >= <=`,
  `is_truthy`, and `op_precedence` (higher binds tighter, unknown is 0).
- `loomrt.strings`: `unescape_string_contents` resolves `\"`, `\\`, `\n`,
  `\r` and `\t` in a string literal body and keeps other escapes as written.
- `loomrt.csvdata`: `parse_csv(text, source, max_rows)` returns a record with
  `source`, `valid`, `headers` and `rows`, and raises `LoomError` on bad
  input, ragged rows or too many rows. `normalize_csv_for_parsing` drops
  leading blanks from unquoted fields. `serialize_records_as_csv`,
  `serialize_csv_if_possible` and `serialize_for_path_output` write records
  back out; `csv_escape` quotes a single field.
- `loomrt.builtins`: `BuiltinRegistry` holds the default directives
  (`watch`, `atomic`, `lines`, `csv.parse`, `log`, `read`, `write`) and
  functions (`filter`, `map`, `print`, `concat`, `exists`), looked up with
  `get_directive` / `get_builtin_function` and listed with
  `directive_names` / `function_names`. Also `extract_read_path`,
  `max_file_size_limit`, `max_rows_limit` and `ensure_file_size_limit`.
- `loomrt.policy`: `TrustMode` and `parse_trust_mode`; `has_glob_meta`,
  `resolve_capability_paths` (splits policy entries into literal paths and
  glob patterns, relative to a base directory), `canonicalize_with_existing_ancestor`
  and `current_filesystem_root`.
- `loomrt.atomic`: `AtomicContext` keeps a `.loom_journal` directory;
  `begin()` returns an `AtomicTransaction` whose `snapshot_path`, `commit`
  and `rollback` record and undo file changes. A transaction is also a
  context manager that commits on success and rolls back on an exception.
- `loomrt.files`: `FileSystem` reads, writes, appends, moves and creates
  directories, resolving relative paths against an optional script
  directory, applying `RuntimeLimits` (file size and CSV row limits), and
  asking an optional authorizer callable before every access.
  `write_or_move_path` takes a `PipeOp`: `SAFE` appends, `FORCE` overwrites,
  `MOVE` moves the source file. `begin_atomic`, `commit_atomic` and
  `rollback_atomic` wrap changes in a transaction. `parse_csv_from_pipe`
  parses a piped path, text, list or record as CSV.

## Example

```python
from loomrt.operators import eval_binary_op, is_truthy
from loomrt.values import Environment, as_string

env = Environment()
env.set("x", 2.0)
total = eval_binary_op(env.get("x"), "+", 3.0)
print(as_string(total))   # 5
print(is_truthy(total))   # True
```

## Atomic writes

```python
from loomrt.atomic import AtomicContext

ctx = AtomicContext("work")
with ctx.begin() as txn:
    txn.snapshot_path("work/report.txt")
    # ... modify work/report.txt; an exception here restores it ...
```

## Limits

`max_file_size_limit()` and `max_rows_limit()` read two environment
variables, which also give `RuntimeLimits` its defaults:

- `LOOM_MAX_FILE_SIZE_BYTES`: largest file read. The default is 32 MiB.
- `LOOM_MAX_ROWS`: most CSV data rows parsed. The default is 100000.

## What it does not do

There is no parser for Loom source text and no evaluator that runs whole
programs, flows, imports, secrets or HTTP directives; there is no command
line tool. `loomrt.policy` resolves capability paths but does not itself
enforce a policy: enforcement is whatever authorizer is given to
`FileSystem`, which allows everything by default.

## Running the tests

```
pip install -e .[test]
pytest
```