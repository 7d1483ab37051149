"""Tests for the Program value type."""
from flowdeps.core.program import Program, ProgramKind


def make_program(code, index=0, location="A.cdc", **kwargs):
    return Program(index=index, location=location, code=code, **kwargs)


def test_contract_program_fields():
    program = make_program(
        'import B from "./B.cdc"\naccess(all) contract A {}\n',
        account_address="0x01",
        account_name="alice",
        args=[1, "two"],
    )
    assert program.kind is ProgramKind.CONTRACT
    assert program.is_contract()
    assert program.name == "A"
    assert program.import_locations == ["./B.cdc"]
    assert program.args == (1, "two")
    assert program.dependencies == {}
    assert program.aliases == {}


def test_script_program_is_named_by_location():
    program = make_program("access(all) fun main(): Int { return 1 }", location="scripts/get.cdc")
    assert program.kind is ProgramKind.SCRIPT
    assert not program.is_contract()
    assert program.name == "scripts/get.cdc"


def test_programs_compare_by_identity():
    code = "access(all) contract A {}"
    assert make_program(code) != make_program(code)


def test_dependency_programs_are_unique_in_import_order():
    b = make_program("access(all) contract B {}", index=1, location="B.cdc")
    c = make_program("access(all) contract C {}", index=2, location="C.cdc")
    a = make_program("access(all) contract A {}")
    a.add_dependency("./C.cdc", c)
    a.add_dependency("./B.cdc", b)
    a.add_dependency("C.cdc", c)
    assert a.dependency_programs == [c, b]


def test_clear_imports():
    a = make_program("access(all) contract A {}")
    a.add_alias("Foo", "0x01")
    a.add_dependency("B.cdc", make_program("access(all) contract B {}", index=1, location="B.cdc"))
    a.clear_imports()
    assert a.dependencies == {}
    assert a.aliases == {}


def test_replaced_code_uses_dependency_accounts_and_aliases():
    b = make_program("access(all) contract B {}", index=1, location="B.cdc", account_address="0xb0")
    a = make_program('import B from "./B.cdc"\nimport "Foo"\naccess(all) contract A {}\n')
    a.add_dependency("./B.cdc", b)
    a.add_alias("Foo", "0xf0")
    assert a.import_addresses() == {"./B.cdc": "0xb0", "Foo": "0xf0"}
    assert a.replaced_code() == "import B from 0xb0\nimport Foo from 0xf0\naccess(all) contract A {}\n"
