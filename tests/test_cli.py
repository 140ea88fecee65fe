from wirehttp.__main__ import main


def test_status_code(capsys):
	assert main(["status", "404"]) == 0
	assert capsys.readouterr().out == "404 Not Found\n"


def test_status_phrase(capsys):
	assert main(["status", "not", "found"]) == 0
	assert capsys.readouterr().out == "404 not found\n"


def test_status_unknown(capsys):
	assert main(["status", "299"]) == 1
	assert capsys.readouterr().out == "299 <unknown-status>\n"
	assert main(["status", "Nope"]) == 1


def test_parse_file(tmp_path, capsys, chunkedRequest):
	path = tmp_path / "request.http"
	path.write_bytes(chunkedRequest)
	assert main(["parse", str(path)]) == 0
	assert capsys.readouterr().out.splitlines() == [
		"REQUEST  POST /upload HTTP/1.1",
		"HEADER   Host: example.com",
		"HEADER   Transfer-Encoding: chunked",
		"BODY     4 bytes",
		"BODY     5 bytes",
		"TRAILER  Expires: never",
		"COMPLETE 9 bytes",
	]


def test_parse_response_only(tmp_path, capsys):
	path = tmp_path / "message.http"
	path.write_bytes(b"GET / HTTP/1.1\r\n\r\n")
	assert main(["parse", "--response", str(path)]) == 1
	assert capsys.readouterr().out.startswith("ERROR    BadStartLine: ")


def test_parse_missing_file(tmp_path):
	assert main(["parse", str(tmp_path / "missing.http")]) == 2


# EOF
