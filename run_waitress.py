"""
Run the LegalEaseAI API with Waitress WSGI server (production-grade, no reloader)
"""
import os

from waitress import serve
from main import app

if __name__ == '__main__':
    port = int(os.getenv('PORT', '5000'))
    threads = int(os.getenv('WAITRESS_THREADS', '4'))

    print("\n" + "=" * 70)
    print("Starting LegalEaseAI with Waitress WSGI Server")
    print(f"Listening on 0.0.0.0:{port} with {threads} threads")
    print("=" * 70 + "\n")

    serve(app, host='0.0.0.0', port=port, threads=threads)
