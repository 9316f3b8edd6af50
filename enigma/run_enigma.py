import argparse
import logging
import sys
from pathlib import Path

import enigma
import enigma_io

logger = logging.getLogger('run_enigma')


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description='Encrypt or decrypt messages with a rotor machine')
    p.add_argument('input', nargs='?', help='file with settings and message lines. Default: standard input')
    p.add_argument('output', nargs='?', help='file for the converted messages. Default: standard output')
    p.add_argument('--config', metavar='FILE',
                   help='machine configuration (alphabet, slots, pawls, rotors). Default: historical Enigma wheels')
    p.add_argument('--verbose', action='store_true', help='trace every converted character on standard error')
    p.add_argument('--progress', action='store_true', help='show a progress bar over the input lines')
    return p.parse_args(argv)


def setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr,
    )


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = Path(args.config).read_text(encoding='utf-8') if args.config else enigma_io.DEFAULT_CONFIG
        machine = enigma_io.read_config(config, trace_logger=logging.getLogger('enigma.trace'))

        if args.input:
            lines = Path(args.input).read_text(encoding='utf-8').splitlines()
        else:
            lines = sys.stdin.read().splitlines()

        output = list(enigma_io.process(machine, lines, disable_tqdm=not args.progress))
    except enigma.EnigmaError as excp:
        logger.error('Error: %s', excp)
        return 1
    except OSError as excp:
        if excp.filename:
            logger.error('Error: could not open %s', excp.filename)
        else:
            logger.error('Error: %s', excp.strerror or excp)
        return 1

    text = ''.join(line + '\n' for line in output)
    if args.output:
        Path(args.output).write_text(text, encoding='utf-8')
    else:
        sys.stdout.write(text)
    return 0


if __name__ == '__main__':
    sys.exit(main())
