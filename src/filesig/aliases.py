from filesig.core.models import HashAlgorithm

ALGORITHM_ALIASES = {
    "md5": HashAlgorithm.MD5,
    "sha1": HashAlgorithm.SHA1,
    "sha-1": HashAlgorithm.SHA1,
    "sha256": HashAlgorithm.SHA256,
    "sha-256": HashAlgorithm.SHA256,
    "sha512": HashAlgorithm.SHA512,
    "sha-512": HashAlgorithm.SHA512,
}

ALGORITHM_CHOICES = list(ALGORITHM_ALIASES.keys())

ALGORITHM_HELP_TEXT = (
    "Hash algorithms to compute (space separated). Default: all four\n"
    "  md5, sha1, sha256, sha512\n"
)

LOOKUP_ALGORITHM_HELP_TEXT = (
    "Digests to send to the repository (space separated). Default: md5\n"
    "One request is issued per file per algorithm.\n"
)

OUTPUT_FORMAT_CHOICES = ["csv", "json"]

EPILOG_TEXT = """
Examples:
  Hash every file in a folder (all four algorithms) and print CSV
  %(prog)s hash ~/Downloads

  Recurse, include hidden files, write JSON to a file
  %(prog)s hash ~/Downloads -r --force-hidden -f json -o signatures.json

  Compare against known-good signatures (Filename, MD5Hash, SHA1Hash, ... columns)
  %(prog)s verify /opt/app -r --reference known_good.csv

  Print an empty reference file to fill in
  %(prog)s template > known_good.csv

  Look MD5 and SHA256 digests up in the signature repository
  %(prog)s lookup /opt/app -r --lookup-algorithms md5 sha256
"""
