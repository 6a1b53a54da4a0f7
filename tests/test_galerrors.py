from galerrors import ERROR_STRINGS, AssemblerError, ErrorCode, at_line, error_string, format_error, print_error


def test_every_code_has_a_message():
    assert set(ERROR_STRINGS) == set(ErrorCode)


def test_codes_sharing_a_message_stay_distinct():
    assert ErrorCode.BAD_VCC_LOCATION is not ErrorCode.BAD_GND_LOCATION
    assert error_string(ErrorCode.BAD_VCC_LOCATION) == error_string(ErrorCode.BAD_GND_LOCATION)


def test_at_line_builds_raisable_error():
    err = at_line(12, ErrorCode.UNKNOWN_PIN)

    assert isinstance(err, AssemblerError)
    assert err.code is ErrorCode.UNKNOWN_PIN
    assert err.line == 12
    assert str(err) == "Error in line 12: unknown pinname"


def test_format_error():
    assert format_error(at_line(3, ErrorCode.NO_EQUALS)) == "Error in line 3: '=' expected"


def test_print_error(capsys):
    print_error(at_line(7, ErrorCode.TOO_MANY_PRODUCTS))

    assert capsys.readouterr().out == "Error in line 7: too many product terms\n"
