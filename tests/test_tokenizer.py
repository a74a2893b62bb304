from audit_log_analytics.tokenizer import split_fields, split_lines


def test_quoted_field_with_separator_and_escaped_quote():
    assert split_fields('"a,b""c"') == ['a,b"c']


def test_fields_are_trimmed_and_unquoted():
    line = ' D1 , "US1" ,  "Threshold identified: x, y" ,20240115103045, I '
    assert split_fields(line) == [
        "D1",
        "US1",
        "Threshold identified: x, y",
        "20240115103045",
        "I",
    ]


def test_empty_fields_are_kept_in_position():
    assert split_fields("D1,,US1,") == ["D1", "", "US1", ""]


def test_malformed_quoting_does_not_raise():
    # An unbalanced quote hides the commas before it; nothing is raised.
    assert split_fields('D1,"unterminated, US1') == ['D1,"unterminated', "US1"]


def test_split_lines_handles_crlf_and_drops_blank_lines():
    text = "h1,h2\r\nA,B\r\n\r\n   \nC,D\n"
    assert split_lines(text) == ["h1,h2", "A,B", "C,D"]


def test_unbalanced_quote_counts_quotes_after_each_comma():
    # Commas before the stray quote see an odd count after them and stay joined.
    line = 'D1,US1,He said "hi, there,X'
    assert split_fields(line) == ['D1,US1,He said "hi', "there", "X"]
