#!/usr/bin/env python3
from http.server import BaseHTTPRequestHandler, HTTPServer
import logging

from oraclelib.oracles import CBCPaddingOracle, ECBOracle, pick_message

HOST = ''
PORT = 8080

# the secret appended to everything the ECB route encrypts
ECB_SECRET = b"Rollin' in my 5.0\nWith my rag-top down so my hair can blow\nThe girlies on standby waving just to say hi\nDid you stop? No, I just drove by\n"

# one set of secrets for the lifetime of the server
CBC_ORACLE = CBCPaddingOracle(include_iv=True)
ECB_ORACLE = ECBOracle(ECB_SECRET, random_prefix=True)

class OracleHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        message = ''
        try:
            if self.path == '/encrypt-with-iv':
                message = CBC_ORACLE.encrypt(pick_message()).hex()
                self.send_response(200)
            elif self.path.startswith('/decrypt-with-iv/'):
                ct = bytes.fromhex(self.path.split('/')[-1])
                # the padding check is the vulnerability - a bad padding is a 500
                if CBC_ORACLE(ct):
                    self.send_response(200)
                else:
                    self.send_response(500)
            elif self.path.startswith('/ecb/'):
                data = bytes.fromhex(self.path.split('/')[-1])
                message = ECB_ORACLE(data).hex()
                self.send_response(200)
            else:
                self.send_response(404)
        except ValueError:
            self.send_response(400)

        self.end_headers()
        self.wfile.write(bytes(message, "utf8"))

if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    logging.info('serving oracles on port %d', PORT)
    with HTTPServer((HOST, PORT), OracleHandler) as server:
        server.serve_forever()
