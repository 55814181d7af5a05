# SPDX-License-Identifier: GPL-2.0-or-later
import logging
import optparse

import roastarena.config
import roastarena.log

from .monitoring import monitoring_start
from .server import ArenaServer

if __name__ == '__main__':
    # Argument parsing
    parser = optparse.OptionParser()
    parser.add_option(
        '-l',
        '--local-logging',
        action='store_true',
        dest='local_logging',
        default=False,
        help='Activate logging to stdout.',
    )
    parser.add_option(
        '-v',
        '--verbose',
        action='store_true',
        dest='verbose',
        default=False,
        help='Verbose mode.',
    )
    options, args = parser.parse_args()

    # Config
    config = roastarena.config.load('arenad')

    # Logging
    roastarena.log.setup_logging(
        'arenad', verbose=options.verbose, local=options.local_logging
    )
    logging.getLogger('asyncio').setLevel(logging.WARNING)
    logging.getLogger('aiohttp.access').setLevel(logging.WARNING)
    logging.getLogger('aiohttp.server').setLevel(logging.WARNING)
    logging.getLogger('aiohttp.web').setLevel(logging.WARNING)

    s = ArenaServer(config=config)

    # Monitoring
    monitoring_config = roastarena.config.section(config, 'monitoring')
    monitoring_start(monitoring_config.get('port', 9060))

    try:
        s.run()
    except KeyboardInterrupt:
        pass
