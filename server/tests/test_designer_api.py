class TestDesignerApi:
    def test_download_scheme_is_an_attachment(self, client, runtime):
        resp = client.get(
            "/designerapi", params={"operation": "downloadscheme", "schemecode": "SimpleWF"}
        )

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "file/xml"
        assert resp.headers["content-disposition"] == "attachment; filename=schema.xml"
        assert resp.text == "<Process Name='SimpleWF' />"
        assert runtime.designer_calls == [{"operation": "downloadscheme", "schemecode": "SimpleWF"}]

    def test_download_scheme_matches_exactly(self, client):
        resp = client.get("/designerapi", params={"operation": "DownloadScheme"})

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert "content-disposition" not in resp.headers

    def test_other_operations_return_text(self, client):
        resp = client.get("/designerapi", params={"operation": "load"})

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert resp.text == "ok:load"

    def test_form_values_win_over_query(self, client, runtime):
        resp = client.post(
            "/designerapi",
            params={"operation": "load", "schemecode": "SimpleWF"},
            data={"operation": "save", "data": "<Process />"},
        )

        assert resp.text == "ok:save"
        assert runtime.designer_calls[-1] == {
            "operation": "save",
            "schemecode": "SimpleWF",
            "data": "<Process />",
        }

    def test_uploaded_file_is_passed_as_stream(self, client):
        resp = client.post(
            "/designerapi",
            params={"operation": "uploadscheme"},
            files={"file": ("scheme.xml", b"<Process Name='Uploaded' />", "text/xml")},
        )

        assert resp.status_code == 200
        assert resp.text == "<Process Name='Uploaded' />"

    def test_failure_returns_empty_404(self, client):
        resp = client.get("/designerapi", params={"operation": "fail"})

        assert resp.status_code == 404
        assert resp.content == b""
