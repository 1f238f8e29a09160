import json
import unittest
from unittest.mock import patch

import yaml
from fastapi.testclient import TestClient

import server

CONFIG = """
mixed-port: 7890
proxies:
  - {name: "HKT-02 IPLC x2", type: ss, server: hk.example.com, port: 443, cipher: aes-128-gcm, password: pw}
  - {name: "狮城01-IEPL-x2套餐到期", type: ss, server: sg.example.com, port: 443, cipher: aes-128-gcm, password: pw}
  - {name: "美国 01", type: ss, server: us.example.com, port: 443, cipher: aes-128-gcm, password: pw}
"""


class TestServer(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(server.app)

    def test_status(self):
        response = self.client.get("/api/status")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["version"], "1.1.0")

    def test_transform(self):
        response = self.client.post("/api/transform", json={"content": CONFIG})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["x-transform-status"], "ok")
        self.assertEqual(response.headers["x-dropped-nodes"], "1")

        config = yaml.safe_load(response.text)
        self.assertEqual([p["name"] for p in config["proxies"]], ["HK IPLC x2", "US"])
        self.assertEqual(config["rules"][-1], "MATCH,漏网之鱼")
        self.assertEqual(config["mixed-port"], 7890)

    def test_transform_with_arguments(self):
        response = self.client.post("/api/transform", json={
            "content": CONFIG,
            "arguments": {"proxyName": "Proxy", "customRules": ["DOMAIN,example.com,DIRECT"]},
        })
        config = yaml.safe_load(response.text)
        self.assertEqual(config["proxy-groups"][0]["name"], "Proxy")
        self.assertEqual(config["rules"][0], "DOMAIN,example.com,DIRECT")

    def test_empty_proxies_returned_unchanged(self):
        response = self.client.post("/api/transform", json={"content": "mode: rule\nproxies: []\n"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["x-transform-status"], "failed")
        self.assertIn("x-transform-error", response.headers)
        self.assertEqual(yaml.safe_load(response.text), {"mode": "rule", "proxies": []})

    def test_invalid_yaml(self):
        response = self.client.post("/api/transform", json={"content": "proxies: [\n"})
        self.assertEqual(response.status_code, 400)

    def test_non_mapping_yaml(self):
        response = self.client.post("/api/transform", json={"content": "- a\n- b\n"})
        self.assertEqual(response.status_code, 400)

    def test_upload(self):
        response = self.client.post(
            "/api/transform/upload",
            files={"file": ("config.yaml", CONFIG.encode("utf-8"), "application/yaml")},
            data={"arguments": json.dumps({"proxyName": "Proxy"})},
        )
        self.assertEqual(response.status_code, 200)
        config = yaml.safe_load(response.text)
        self.assertEqual(config["proxy-groups"][0]["name"], "Proxy")

    def test_upload_bad_arguments(self):
        response = self.client.post(
            "/api/transform/upload",
            files={"file": ("config.yaml", CONFIG.encode("utf-8"), "application/yaml")},
            data={"arguments": "[1, 2]"},
        )
        self.assertEqual(response.status_code, 400)

    def test_default_arguments_file(self):
        with patch.object(server, "load_default_arguments", return_value={"proxyName": "Default"}):
            response = self.client.post("/api/transform", json={"content": CONFIG})
        config = yaml.safe_load(response.text)
        self.assertEqual(config["proxy-groups"][0]["name"], "Default")


if __name__ == '__main__':
    unittest.main()
