import pytest

from rbindgen import logging as rbindgen_logging
from rbindgen.__main__ import main, split_clang_args
from rbindgen.bindgen import HEADER_COMMENT

HEADERS = 'tests/c_examples/headers'


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    config = tmp_path / 'rbindgen.toml'
    config.write_text('[bindgen]\nsystem_includes = false\n', encoding='utf-8')
    monkeypatch.setenv('RBINDGEN_CONFIG', str(config))
    logger = rbindgen_logging.get_logger()
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def test_split_clang_args():
    assert split_clang_args(['a.h', '--', '-DX', '--']) == (['a.h'], ['-DX', '--'])
    assert split_clang_args(['a.h']) == (['a.h'], [])


def test_bindings_go_to_stdout(capsys):
    main([f'{HEADERS}/bar.h'])
    out = capsys.readouterr().out
    assert out.startswith(HEADER_COMMENT)
    assert 'pub struct Struct_point {' in out
    assert 'pub fn bar_only(value: ::std::os::raw::c_int) -> ::std::os::raw::c_int;' in out


def test_output_file_and_options(tmp_path, capsys):
    output = tmp_path / 'out' / 'bindings.rs'
    main([
        f'{HEADERS}/foo.h',
        '-o', str(output),
        '--match', 'foo',
        '--static-link', 'foo',
        '--override-enum-type', 'uchar',
    ])
    assert capsys.readouterr().out == ''
    text = output.read_text(encoding='utf-8')
    assert 'bar_only' not in text
    assert '#[link(name = "foo", kind = "static")]' in text
    assert 'pub fn foo_length(p: Struct_point) -> ::std::os::raw::c_int;' in text


def test_clang_arguments_after_separator(tmp_path, capsys):
    header = tmp_path / 'cond.h'
    header.write_text('#ifdef WITH_EXTRA\nint extra(void);\n#endif\nint base(void);\n', encoding='utf-8')
    main([str(header)])
    assert 'extra' not in capsys.readouterr().out
    main([str(header), '--', '-DWITH_EXTRA'])
    assert 'pub fn extra() -> ::std::os::raw::c_int;' in capsys.readouterr().out


def test_parse_error_exits(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([f'{HEADERS}/broken.h'])
    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert '❌' in err
    assert 'undefined_type' in err


def test_strict_unknown_type_exits(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([f'{HEADERS}/strict.h', '--fail-on-unknown-type'])
    assert excinfo.value.code == 1
    assert 'long double' in capsys.readouterr().err


def test_bad_enum_override_is_a_usage_error(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([f'{HEADERS}/enums.h', '--override-enum-type', 'quad'])
    assert excinfo.value.code == 2
    assert 'quad' in capsys.readouterr().err


def test_missing_config_is_a_usage_error(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([f'{HEADERS}/bar.h', '-c', str(tmp_path / 'absent.toml')])
    assert excinfo.value.code == 2


def test_warnings_go_to_stderr(capsys):
    main([f'{HEADERS}/noisy.h'])
    captured = capsys.readouterr()
    assert 'noisy header' in captured.err
    assert 'noisy header' not in captured.out
    assert 'pub fn quiet_fn(' in captured.out


def test_rustfmt_must_be_installed(monkeypatch, capsys):
    monkeypatch.setattr('shutil.which', lambda name: None)
    with pytest.raises(SystemExit) as excinfo:
        main([f'{HEADERS}/bar.h', '--rustfmt'])
    assert excinfo.value.code == 2
    assert 'rustfmt' in capsys.readouterr().err
